"""
Tests for the OCR engine's OCR.Space provider.
HTTP is mocked; no network access.
"""
import os
import sys
import shutil
import tempfile
import unittest
from unittest.mock import MagicMock, patch

import requests

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from ocr.ocr_engine import OCREngine, OCRResult


def http_response(status_code=200, json_data=None, json_error=None):
    response = MagicMock()
    response.status_code = status_code
    if json_error:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_data
    return response


class TestOCRSpaceProvider(unittest.TestCase):

    def setUp(self):
        self.engine = OCREngine(provider='ocrspace', timeout_ms=45000, logger=MagicMock(),
                                ocrspace_api_key='test-key')

    @patch('ocr.ocr_engine.requests.post')
    def test_success(self, mock_post):
        mock_post.return_value = http_response(json_data={
            'IsErroredOnProcessing': False,
            'ParsedResults': [{'ParsedText': 'GMV Rp 15.000'}],
        })

        result = self.engine.extract_text(image_bytes=b'jpeg')

        self.assertTrue(result.success)
        self.assertEqual(result.raw_text, 'GMV Rp 15.000')
        kwargs = mock_post.call_args.kwargs
        self.assertEqual(kwargs['timeout'], 45)
        self.assertEqual(kwargs['data']['OCREngine'], '2')
        self.assertEqual(kwargs['data']['apikey'], 'test-key')
        self.assertIn('file', kwargs['files'])

    @patch('ocr.ocr_engine.requests.post')
    def test_url_source(self, mock_post):
        mock_post.return_value = http_response(json_data={'ParsedResults': [{'ParsedText': 'x'}]})
        self.engine.extract_text(image_url='https://files.example/a.jpg')
        kwargs = mock_post.call_args.kwargs
        self.assertEqual(kwargs['data']['url'], 'https://files.example/a.jpg')
        self.assertIsNone(kwargs['files'])

    @patch('ocr.ocr_engine.requests.post')
    def test_reads_image_path(self, mock_post):
        mock_post.return_value = http_response(json_data={'ParsedResults': [{'ParsedText': 'x'}]})
        temp_dir = tempfile.mkdtemp()
        try:
            path = os.path.join(temp_dir, 'shot.jpg')
            with open(path, 'wb') as fh:
                fh.write(b'image-bytes')
            self.assertTrue(self.engine.extract_text(image_path=path).success)
            self.assertEqual(mock_post.call_args.kwargs['files']['file'][1], b'image-bytes')
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)

    @patch('ocr.ocr_engine.requests.post')
    def test_timeout_is_retryable(self, mock_post):
        mock_post.side_effect = requests.Timeout()
        result = self.engine.extract_text(image_bytes=b'jpeg')
        self.assertFalse(result.success)
        self.assertTrue(result.retryable)
        self.assertIn('timed out', result.error_message)

    @patch('ocr.ocr_engine.requests.post')
    def test_server_error_is_retryable(self, mock_post):
        mock_post.return_value = http_response(status_code=502)
        result = self.engine.extract_text(image_bytes=b'jpeg')
        self.assertTrue(result.retryable)

    @patch('ocr.ocr_engine.requests.post')
    def test_forbidden_is_not_retryable(self, mock_post):
        mock_post.return_value = http_response(status_code=403)
        result = self.engine.extract_text(image_bytes=b'jpeg')
        self.assertFalse(result.success)
        self.assertFalse(result.retryable)

    @patch('ocr.ocr_engine.requests.post')
    def test_processing_error_with_api_key_message(self, mock_post):
        mock_post.return_value = http_response(json_data={
            'IsErroredOnProcessing': True,
            'ErrorMessage': ['The API key is invalid'],
        })
        result = self.engine.extract_text(image_bytes=b'jpeg')
        self.assertEqual(result.error_message, 'The API key is invalid')
        self.assertFalse(result.retryable)

    @patch('ocr.ocr_engine.requests.post')
    def test_processing_error_is_retryable(self, mock_post):
        mock_post.return_value = http_response(json_data={
            'IsErroredOnProcessing': True,
            'ErrorMessage': ['E500: Server busy'],
        })
        result = self.engine.extract_text(image_bytes=b'jpeg')
        self.assertEqual(result.error_message, 'E500: Server busy')
        self.assertTrue(result.retryable)

    @patch('ocr.ocr_engine.requests.post')
    def test_non_json_response(self, mock_post):
        mock_post.return_value = http_response(json_error=ValueError("no json"))
        result = self.engine.extract_text(image_bytes=b'jpeg')
        self.assertFalse(result.success)
        self.assertTrue(result.retryable)

    @patch('ocr.ocr_engine.requests.post')
    def test_empty_text(self, mock_post):
        mock_post.return_value = http_response(json_data={'ParsedResults': [{'ParsedText': '  \n'}]})
        result = self.engine.extract_text(image_bytes=b'jpeg')
        self.assertEqual(result.error_message, 'No text detected in image')

    @patch('ocr.ocr_engine.requests.post')
    def test_missing_key_is_not_retryable(self, mock_post):
        engine = OCREngine(provider='ocrspace', logger=MagicMock(), ocrspace_api_key='')
        result = engine.extract_text(image_bytes=b'jpeg')
        self.assertFalse(result.retryable)
        mock_post.assert_not_called()


class TestInputHandling(unittest.TestCase):

    def test_missing_file(self):
        engine = OCREngine(provider='ocrspace', logger=MagicMock(), ocrspace_api_key='k')
        result = engine.extract_text(image_path='/nonexistent/shot.jpg')
        self.assertFalse(result.success)
        self.assertFalse(result.retryable)

    def test_no_input(self):
        engine = OCREngine(provider='ocrspace', logger=MagicMock(), ocrspace_api_key='k')
        self.assertFalse(engine.extract_text().success)

    def test_unknown_provider(self):
        engine = OCREngine(provider='tesseract', logger=MagicMock(), ocrspace_api_key='k')
        result = engine.extract_text(image_bytes=b'jpeg')
        self.assertFalse(result.retryable)

    def test_gemini_needs_bytes(self):
        engine = OCREngine(provider='gemini', logger=MagicMock(), google_api_key='g')
        self.assertFalse(engine.extract_text(image_url='https://x/y.jpg').retryable)

    def test_result_constructors(self):
        self.assertEqual(OCRResult.ok('t'), OCRResult(success=True, raw_text='t'))
        self.assertFalse(OCRResult.failed('e', retryable=False).retryable)


if __name__ == '__main__':
    unittest.main()
