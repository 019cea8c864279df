from layered.http.model import HTTPRequest
from layered.http.responses import text
from layered.middleware import ParseForm, ParseJson


def echo(request):
	return text(repr((request.form, request.json)))


def test_parse_form():
	handler = ParseForm(echo)
	request = HTTPRequest.Create(
		"POST",
		"/",
		{"Content-Type": "application/x-www-form-urlencoded; charset=utf-8"},
		"name=J%C3%BCrgen&tag=a&tag=b&empty=",
	)
	assert handler(request).body == [
		repr(({"name": "Jürgen", "tag": ["a", "b"], "empty": ""}, None))
	]


def test_parse_form_ignores_other_types():
	handler = ParseForm(echo)
	request = HTTPRequest.Create("POST", "/", {"Content-Type": "text/plain"}, "a=1")
	assert handler(request).body == [repr((None, None))]
	assert handler(HTTPRequest.Create("GET", "/?a=1")).body == [repr((None, None))]


def test_parse_json():
	handler = ParseJson(echo)
	request = HTTPRequest.Create(
		"POST", "/", {"Content-Type": "application/json"}, '{"a": [1, true]}'
	)
	assert handler(request).body == [repr((None, {"a": [1, True]}))]


def test_parse_json_malformed():
	called: list[bool] = []

	def inner(request):
		called.append(True)
		return text("unreachable")

	request = HTTPRequest.Create(
		"POST", "/", {"Content-Type": "application/json"}, "{broken"
	)
	response = ParseJson(inner)(request)
	assert response.status == 400
	assert called == []


def test_parsed_request_is_a_copy():
	original = HTTPRequest.Create(
		"POST", "/", {"Content-Type": "application/json"}, "[1]"
	)
	seen: list[HTTPRequest] = []
	ParseJson(lambda r: seen.append(r) or text("ok"))(original)
	assert original.json is None
	assert seen[0].json == [1]
	assert seen[0].body == original.body


# EOF
