import asyncio
from unittest.mock import MagicMock, patch

import pytest
import requests

from errors import UploadFailed
from media import MediaUploader


def response(status_code, body=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = body or {}
    resp.text = str(body)
    return resp


@patch("media.requests.post")
def test_upload_returns_secure_url(mock_post):
    mock_post.return_value = response(200, {"secure_url": "https://res.cloudinary.com/demo/x.png"})
    uploader = MediaUploader("demo", "preset")

    url = asyncio.run(uploader.upload("data:image/png;base64,AAAA"))

    assert url == "https://res.cloudinary.com/demo/x.png"
    args, kwargs = mock_post.call_args
    assert args[0] == "https://api.cloudinary.com/v1_1/demo/image/upload"
    assert kwargs["data"] == {"file": "data:image/png;base64,AAAA", "upload_preset": "preset", "folder": "Blogging"}


@patch("media.requests.post")
def test_upload_error_status(mock_post):
    mock_post.return_value = response(400, {"error": {"message": "Upload preset not found"}})
    with pytest.raises(UploadFailed):
        asyncio.run(MediaUploader("demo", "preset").upload("data:image/png;base64,AAAA"))


@patch("media.requests.post")
def test_upload_network_error(mock_post):
    mock_post.side_effect = requests.ConnectionError("boom")
    with pytest.raises(UploadFailed):
        asyncio.run(MediaUploader("demo", "preset").upload("data:image/png;base64,AAAA"))


@patch("media.requests.post")
def test_upload_not_configured(mock_post):
    with pytest.raises(UploadFailed):
        asyncio.run(MediaUploader(None, None).upload("data:image/png;base64,AAAA"))
    mock_post.assert_not_called()
