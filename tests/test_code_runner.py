import asyncio
import json

import httpx
import pytest

from prepcoach.errors import CodeRunnerError
from prepcoach.services.code_runner import CodeRunner


URL = "http://runner.test/run"


def run(runner, code="print(1)", language="python"):
    return asyncio.run(runner.run(code, language))


def test_run_posts_code_and_language():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"output": "1\n"})

    result = run(CodeRunner(url=URL, transport=httpx.MockTransport(handler)), language="javascript")
    assert seen == {"url": URL, "body": {"code": "print(1)", "language": "javascript"}}
    assert result.stdout == "1\n"
    assert result.stderr is None
    assert result.ok


def test_program_error_is_reported_not_raised():
    def handler(request):
        return httpx.Response(200, json={"output": "", "error": "NameError: x"})

    result = run(CodeRunner(url=URL, transport=httpx.MockTransport(handler)))
    assert result.stderr == "NameError: x"
    assert not result.ok


def test_non_2xx_raises():
    def handler(request):
        return httpx.Response(500, text="boom")

    with pytest.raises(CodeRunnerError, match="500"):
        run(CodeRunner(url=URL, transport=httpx.MockTransport(handler)))


def test_transport_failure_raises():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(CodeRunnerError):
        run(CodeRunner(url=URL, transport=httpx.MockTransport(handler)))


def test_non_json_body_raises():
    def handler(request):
        return httpx.Response(200, text="not json")

    with pytest.raises(CodeRunnerError):
        run(CodeRunner(url=URL, transport=httpx.MockTransport(handler)))


def test_unconfigured_runner(offline):
    runner = CodeRunner()
    assert not runner.enabled
    with pytest.raises(CodeRunnerError):
        run(runner)
