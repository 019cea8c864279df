import pytest

from layered.utils import logging
from layered.utils.htmpl import H, html
from layered.utils.io import asWritable
from layered.utils.logging import LogLevel, debug, info, logged, setLogLevel, warning


def test_html_escapes_text():
	assert html("<b>", H.p("a & b", H.br(), _="note")) == (
		'&lt;b&gt;<p class="note">a &amp; b<br /></p>'
	)
	assert html(H.div()) == "<div></div>"


def test_unknown_tag():
	with pytest.raises(AttributeError):
		H.blink


def test_as_writable():
	assert asWritable("é") == "é".encode("utf8")
	assert asWritable(b"x") == b"x"
	assert asWritable({"a": 1}) == b'{"a": 1}'


def test_log_threshold(monkeypatch):
	monkeypatch.setattr(logging, "THRESHOLD", logging.THRESHOLD)
	setLogLevel("warning")
	assert not logged(debug)
	assert logged(warning)
	assert not logged(info)
	assert info("Dropped", Key=1).level is LogLevel.Info
	assert setLogLevel(LogLevel.Debug) is LogLevel.Debug
	assert logged(debug)
	with pytest.raises(ValueError):
		setLogLevel("verbose")


# EOF
