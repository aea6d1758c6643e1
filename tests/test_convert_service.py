import json
import unittest
from io import BytesIO

import httpx
from docx import Document

from app.core.errors import ExtractionError, RemoteServiceError, ValidationError
from app.render.docx_writer import DOCX_MEDIA_TYPE
from app.services.convert_service import (
    content_disposition,
    convert_resume,
    converted_filename,
    validate_upload,
)


def _transport_client(status_code: int, body: dict, calls: list) -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(status_code, json=body)

    return httpx.Client(transport=httpx.MockTransport(handler))


def _completion(payload: dict) -> dict:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-4o-mini",
        "choices": [
            {"index": 0, "finish_reason": "stop", "message": {"role": "assistant", "content": json.dumps(payload)}}
        ],
    }


class FilenameTests(unittest.TestCase):
    def test_converted_filename_replaces_last_extension(self):
        self.assertEqual(converted_filename("Jane Resume.pdf"), "Jane Resume_converted.docx")
        self.assertEqual(converted_filename("cv.final.docx"), "cv.final_converted.docx")
        self.assertEqual(converted_filename("notes"), "notes_converted.docx")

    def test_converted_filename_drops_paths_and_falls_back(self):
        self.assertEqual(converted_filename("C:\\Users\\me\\cv.txt"), "cv_converted.docx")
        self.assertEqual(converted_filename(""), "resume_converted.docx")
        self.assertEqual(converted_filename(".pdf"), "resume_converted.docx")

    def test_content_disposition_ascii(self):
        self.assertEqual(
            content_disposition("cv_converted.docx"),
            'attachment; filename="cv_converted.docx"',
        )

    def test_content_disposition_non_ascii_adds_encoded_name(self):
        header = content_disposition("Zoë_converted.docx")
        self.assertTrue(header.startswith('attachment; filename="Zo_converted.docx"'))
        self.assertIn("filename*=UTF-8''Zo%C3%AB_converted.docx", header)
        header.encode("latin-1")


class ValidateUploadTests(unittest.TestCase):
    def test_missing_key(self):
        with self.assertRaises(ValidationError):
            validate_upload(filename="cv.txt", content_type="text/plain", api_key="  ")

    def test_unsupported_type(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_upload(filename="cv.png", content_type="image/png", api_key="sk-test")
        self.assertEqual(str(ctx.exception), "Unsupported file type")

    def test_supported_types(self):
        for filename, content_type in (
            ("cv.pdf", "application/pdf"),
            ("cv.doc", "application/msword"),
            ("cv.docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
            ("cv.txt", "text/plain"),
        ):
            self.assertEqual(validate_upload(filename=filename, content_type=content_type, api_key="k"), content_type)


class ConvertResumeTests(unittest.TestCase):
    def test_end_to_end_text_resume(self):
        calls: list = []
        client = _transport_client(
            200,
            _completion(
                {
                    "name": "JANE DOE",
                    "email": "jane@example.com",
                    "summary": ["One.", "Two."],
                    "experience": [{"title": "Engineer", "responsibilities": ["Shipped"]}],
                }
            ),
            calls,
        )

        result = convert_resume(
            filename="jane.txt",
            content_type="text/plain",
            content=b"Jane Doe\njane@example.com\nEngineer",
            api_key="sk-test",
            http_client=client,
        )

        self.assertEqual(len(calls), 1)
        self.assertEqual(result.filename, "jane_converted.docx")
        self.assertEqual(result.media_type, DOCX_MEDIA_TYPE)
        texts = [p.text for p in Document(BytesIO(result.content)).paragraphs if p.text]
        self.assertEqual(texts[0], "JANE DOE")
        self.assertIn("Shipped", texts)

    def test_extraction_failure_never_calls_remote(self):
        calls: list = []
        client = _transport_client(200, _completion({}), calls)

        with self.assertRaises(ExtractionError):
            convert_resume(
                filename="blank.txt",
                content_type="text/plain",
                content=b"   ",
                api_key="sk-test",
                http_client=client,
            )
        self.assertEqual(calls, [])

    def test_remote_failure_propagates(self):
        calls: list = []
        client = _transport_client(429, {"error": {"message": "Rate limit reached"}}, calls)

        with self.assertRaises(RemoteServiceError) as ctx:
            convert_resume(
                filename="cv.txt",
                content_type="text/plain",
                content=b"resume text",
                api_key="sk-test",
                http_client=client,
            )
        self.assertEqual(ctx.exception.upstream_status, 429)
        self.assertEqual(len(calls), 1)


if __name__ == "__main__":
    unittest.main()
