import json
import unittest
from types import SimpleNamespace
from unittest.mock import patch

import httpx

from app.ai.prompts import build_structuring_prompt
from app.ai.structuring import parse_structured_reply, structure_resume
from app.core.errors import RemoteServiceError, ResponseFormatError


def _completion(content: str) -> dict:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-4o-mini",
        "choices": [
            {
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": content},
            }
        ],
    }


class _Recorder:
    def __init__(self, status_code: int, body: dict):
        self.status_code = status_code
        self.body = body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


class ParseStructuredReplyTests(unittest.TestCase):
    def test_plain_json(self):
        self.assertEqual(parse_structured_reply('{"name": "A"}'), {"name": "A"})

    def test_json_wrapped_in_prose(self):
        reply = 'Sure! Here is the resume:\n{"name": "JANE DOE", "summary": ["a"]}\nLet me know.'
        self.assertEqual(parse_structured_reply(reply), {"name": "JANE DOE", "summary": ["a"]})

    def test_json_in_markdown_fence(self):
        reply = '```json\n{"name": "JANE DOE"}\n```'
        self.assertEqual(parse_structured_reply(reply), {"name": "JANE DOE"})

    def test_unparseable_reply(self):
        with self.assertRaises(ResponseFormatError):
            parse_structured_reply("I could not read this resume.")
        with self.assertRaises(ResponseFormatError):
            parse_structured_reply("prefix {not json} suffix")

    def test_empty_and_non_object_replies(self):
        with self.assertRaises(ResponseFormatError):
            parse_structured_reply("   ")
        with self.assertRaises(ResponseFormatError):
            parse_structured_reply("[1, 2, 3]")


class StructureResumeTests(unittest.TestCase):
    def test_request_is_single_low_temperature_call(self):
        recorder = _Recorder(200, _completion(json.dumps({"name": "JANE DOE"})))

        record = structure_resume("sk-test", "Jane Doe\nEngineer", http_client=recorder.client())

        self.assertEqual(record.name, "JANE DOE")
        self.assertEqual(len(recorder.requests), 1)
        request = recorder.requests[0]
        self.assertTrue(request.url.path.endswith("/chat/completions"))
        self.assertEqual(request.headers["authorization"], "Bearer sk-test")
        sent = json.loads(request.content)
        self.assertEqual(sent["temperature"], 0.3)
        self.assertEqual(sent["max_tokens"], 4000)
        self.assertEqual(sent["messages"][0]["role"], "user")
        self.assertIn("Jane Doe\nEngineer", sent["messages"][0]["content"])
        self.assertIn('"visaStatus"', sent["messages"][0]["content"])

    def test_prose_wrapped_reply_is_recovered(self):
        content = 'Here you go:\n{"name": "JANE DOE", "experience": []}\nThanks!'
        recorder = _Recorder(200, _completion(content))

        record = structure_resume("sk-test", "resume", http_client=recorder.client())

        self.assertEqual(record.name, "JANE DOE")
        self.assertEqual(record.experience, [])

    def test_unauthorized_raises_remote_service_error_without_retry(self):
        recorder = _Recorder(
            401,
            {
                "error": {
                    "message": "Incorrect API key provided: sk-bad.",
                    "type": "invalid_request_error",
                    "code": "invalid_api_key",
                }
            },
        )

        with self.assertRaises(RemoteServiceError) as ctx:
            structure_resume("sk-bad", "resume", http_client=recorder.client())

        self.assertEqual(ctx.exception.upstream_status, 401)
        self.assertEqual(ctx.exception.upstream_message, "Incorrect API key provided: sk-bad.")
        self.assertIn("Incorrect API key provided", str(ctx.exception))
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(len(recorder.requests), 1)

    def test_server_error_is_not_retried(self):
        recorder = _Recorder(503, {"error": {"message": "overloaded"}})

        with self.assertRaises(RemoteServiceError):
            structure_resume("sk-test", "resume", http_client=recorder.client())
        self.assertEqual(len(recorder.requests), 1)

    def test_schema_mismatch_raises_response_format_error(self):
        recorder = _Recorder(200, _completion(json.dumps({"experience": "not a list"})))

        with self.assertRaises(ResponseFormatError):
            structure_resume("sk-test", "resume", http_client=recorder.client())

    def test_unreachable_service_has_no_upstream_status(self):
        requests: list[httpx.Request] = []

        def refuse(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(refuse))
        with self.assertRaises(RemoteServiceError) as ctx:
            structure_resume("sk-test", "resume", http_client=client)

        self.assertIsNone(ctx.exception.upstream_status)
        self.assertTrue(str(ctx.exception).startswith("OpenAI API error: "))
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(len(requests), 1)

    def test_injected_http_client_is_left_open(self):
        recorder = _Recorder(200, _completion(json.dumps({"name": "JANE DOE"})))
        client = recorder.client()

        structure_resume("sk-test", "resume", http_client=client)

        self.assertFalse(client.is_closed)
        client.close()

    def test_owned_client_is_closed_after_the_call(self):
        reply = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content='{"name": "JANE DOE"}'))])
        with patch("app.ai.providers.openai_provider.OpenAI") as openai_cls:
            openai_cls.return_value.chat.completions.create.return_value = reply
            record = structure_resume("sk-test", "resume")

        self.assertEqual(record.name, "JANE DOE")
        self.assertNotIn("http_client", openai_cls.call_args.kwargs)
        openai_cls.return_value.close.assert_called_once_with()

    def test_owned_client_is_closed_when_the_call_fails(self):
        with patch("app.ai.providers.openai_provider.OpenAI") as openai_cls:
            openai_cls.return_value.chat.completions.create.return_value = SimpleNamespace(
                choices=[SimpleNamespace(message=SimpleNamespace(content="no json here"))]
            )
            with self.assertRaises(ResponseFormatError):
                structure_resume("sk-test", "resume")

        openai_cls.return_value.close.assert_called_once_with()


class PromptTests(unittest.TestCase):
    def test_prompt_carries_rules_and_resume(self):
        prompt = build_structuring_prompt("RAW RESUME")
        self.assertIn("Convert name to ALL CAPS", prompt)
        self.assertIn("exactly 2 paragraphs", prompt)
        self.assertTrue(prompt.endswith("Resume to convert:\nRAW RESUME"))


if __name__ == "__main__":
    unittest.main()
