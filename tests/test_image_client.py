import unittest
from io import BytesIO
from unittest.mock import MagicMock

from PIL import Image

from localevents.api.image_client import ImageFetcher, image_mime, verify_image
from localevents.exceptions import DecodeError, NetworkError
from tests.fakes import MockResponseContext, make_response


def png_bytes(size=(4, 4)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


IMAGE_URL = "https://img.test/42_large.jpg"


class TestVerifyImage(unittest.TestCase):
    def test_valid_image(self):
        verify_image(png_bytes())

    def test_garbage(self):
        with self.assertRaises(DecodeError):
            verify_image(b"definitely not an image")

    def test_empty(self):
        with self.assertRaises(DecodeError):
            verify_image(b"")

    def test_mime(self):
        self.assertEqual(image_mime(png_bytes()), "image/png")
        self.assertEqual(image_mime(b"garbage"), "application/octet-stream")


class TestImageFetcher(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.http_client = MagicMock()
        self.fetcher = ImageFetcher(self.http_client, rate=100)

    async def asyncTearDown(self):
        self.fetcher.close()

    def respond(self, status=200, body=b""):
        response = make_response(status, body)
        self.http_client.request.side_effect = lambda *args, **kwargs: MockResponseContext(
            response
        )

    async def test_fetch_returns_verified_bytes(self):
        data = png_bytes()
        self.respond(body=data)
        self.assertEqual(await self.fetcher(IMAGE_URL), data)
        self.http_client.request.assert_called_once_with("GET", IMAGE_URL)

    async def test_missing_image(self):
        self.respond(status=404)
        with self.assertRaises(NetworkError) as ctx:
            await self.fetcher.fetch(IMAGE_URL)
        self.assertEqual(ctx.exception.status, 404)
        self.assertEqual(ctx.exception.url, IMAGE_URL)

    async def test_undecodable_body(self):
        self.respond(body=b"<html>error page</html>")
        with self.assertRaises(DecodeError) as ctx:
            await self.fetcher.fetch(IMAGE_URL)
        self.assertEqual(ctx.exception.url, IMAGE_URL)


if __name__ == "__main__":
    unittest.main()
