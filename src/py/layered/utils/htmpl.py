from typing import Callable, Iterable, Iterator, LiteralString, Union, cast

from mypy_extensions import KwArg, VarArg

# --
# HTMPL builds HTML fragments out of nodes, escaping text content so that
# values coming from requests or route tables can be embedded safely.

HTML_EMPTY: list[LiteralString] = "area base br col hr img input link meta source wbr".split()
HTML_ESCAPED = str.maketrans(
	{"&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&quot;", "'": "&#x27;"}
)
HTML_QUOTED = str.maketrans({"&": "&amp;", '"': "&quot;"})


def escape(text: str) -> str:
	return text.translate(HTML_ESCAPED)


def quoted(text: str | None) -> str:
	return text.translate(HTML_QUOTED) if text else ""


TNodeContent = Union["Node", str, int, float]
TAttributeContent = str | bool | float | int | None


class Node:
	__slots__ = ["name", "attributes", "children"]

	def __init__(
		self,
		name: str,
		children: Iterable[TNodeContent] | None = None,
		attributes: dict[str, TAttributeContent] | None = None,
	):
		self.name = name
		self.attributes: dict[str, TAttributeContent] = attributes or {}
		self.children: list[TNodeContent] = [_ for _ in children] if children else []

	def iterHTML(self) -> Iterator[str]:
		if self.name == "#text":
			yield escape(str(self.attributes.get("#value") or ""))
		else:
			yield f"<{self.name}"
			for k, v in self.attributes.items():
				yield f' {k}="{quoted(str(v))}"' if v is not None else f" {k}"
			if not self.children:
				yield " />" if self.name in HTML_EMPTY else f"></{self.name}>"
			else:
				yield ">"
				for _ in self.children:
					if isinstance(_, Node):
						yield from _.iterHTML()
					else:
						yield escape(str(_))
				yield f"</{self.name}>"

	def __str__(self) -> str:
		return "".join(self.iterHTML())


def text(value: str) -> Node:
	return Node("#text", attributes={"#value": value})


NodeFactory = Callable[
	[
		VarArg(TNodeContent | list[TNodeContent]),
		KwArg(TAttributeContent),
	],
	Node,
]


def nodeFactory(name: str) -> NodeFactory:
	def f(*children: TNodeContent | list[TNodeContent], **attributes: TAttributeContent):
		content: list[TNodeContent] = []
		for _ in children:
			if isinstance(_, list):
				content += _
			else:
				content.append(_)
		# `_` stands for `class`, which is a reserved word
		attrs: dict[str, TAttributeContent] = {
			("class" if k == "_" else k): v for k, v in attributes.items()
		}
		return Node(name, [text(_) if isinstance(_, str) else _ for _ in content], attrs)

	f.__name__ = name
	return cast(NodeFactory, f)


HTML_TAGS: list[LiteralString] = (
	"""\
a b body br code div em h1 h2 head hr html li p pre small span strong table
tbody td th thead title tr ul\
""".split()
)


class Markup:
	__slots__ = ["_factories"]

	def __init__(self, factories: dict[str, NodeFactory]):
		self._factories: dict[str, NodeFactory] = factories

	def __getattr__(self, name: str) -> NodeFactory:
		factories = self._factories
		if name not in factories:
			raise AttributeError(f"No tag {name}, pick one of {','.join(factories)}")
		return factories[name]


H: Markup = Markup({_: nodeFactory(_) for _ in HTML_TAGS})


def html(*nodes: Node | str) -> str:
	"""Renders the given nodes (strings are escaped) as an HTML fragment."""
	return "".join(
		"".join(_.iterHTML()) if isinstance(_, Node) else escape(_) for _ in nodes
	)


# EOF
