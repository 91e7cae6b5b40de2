import json

import pytest
from PIL import ExifTags, Image, features
from PIL.PngImagePlugin import PngInfo

from xp_backend.features.metadata.encoding import UNICODE_PREFIX
from xp_backend.features.metadata.extractors import (
    extract_jpeg_metadata,
    extract_png_metadata,
    extract_webp_metadata,
)
from xp_backend.features.metadata.image_readers import read_image_info


def _png(path, **chunks) -> str:
    info = PngInfo()
    for key, value in chunks.items():
        info.add_text(key, value)
    Image.new("RGB", (8, 8), "white").save(path, "PNG", pnginfo=info)
    return str(path)


def _exif(**tags) -> Image.Exif:
    exif = Image.Exif()
    for name, value in tags.items():
        exif[getattr(ExifTags.Base, name)] = value
    return exif


def test_read_image_info_png_text(tmp_path) -> None:
    path = _png(tmp_path / "a.png", parameters="a cat\nSteps: 20")
    info = read_image_info(path)
    assert info["format"] == "png"
    assert (info["width"], info["height"]) == (8, 8)
    assert info["text"]["parameters"] == "a cat\nSteps: 20"
    assert info["exif"] == {}


def test_read_image_info_rejects_non_image(tmp_path) -> None:
    bogus = tmp_path / "broken.png"
    bogus.write_bytes(b"definitely not a png")
    with pytest.raises(OSError):
        read_image_info(str(bogus))


def test_png_a1111_parameters(tmp_path, a1111_text) -> None:
    data = extract_png_metadata(read_image_info(_png(tmp_path / "a.png", parameters=a1111_text)))
    assert data["raw_parameters"] == a1111_text
    assert data["parameters"]["steps"] == 28
    assert data["parameters"]["negative_prompt"] == "lowres, bad anatomy"
    assert "workflow" not in data


def test_png_comfy_workflow_and_prompt(tmp_path, comfy_workflow, prompt_graph) -> None:
    path = _png(tmp_path / "c.png", workflow=json.dumps(comfy_workflow), prompt=json.dumps(prompt_graph))
    data = extract_png_metadata(read_image_info(path))
    assert data["workflow"] == comfy_workflow
    assert data["prompt"] == prompt_graph


def test_png_non_json_chunk_kept_verbatim(tmp_path) -> None:
    data = extract_png_metadata(read_image_info(_png(tmp_path / "t.png", workflow="not json")))
    assert data == {"workflow": "not json"}


def test_png_without_metadata_returns_none(tmp_path) -> None:
    assert extract_png_metadata(read_image_info(_png(tmp_path / "plain.png"))) is None


def test_jpeg_user_comment_a1111(tmp_path, a1111_text) -> None:
    path = tmp_path / "a.jpg"
    comment = UNICODE_PREFIX + a1111_text.encode("utf-16-be")
    Image.new("RGB", (8, 8)).save(path, "JPEG", exif=_exif(UserComment=comment).tobytes())

    info = read_image_info(str(path))
    assert info["format"] == "jpeg"
    data = extract_jpeg_metadata(info)
    assert data["parameters"]["seed"] == 1234
    assert data["raw_parameters"] == a1111_text


def test_jpeg_workflow_in_image_description(tmp_path, comfy_workflow) -> None:
    path = tmp_path / "w.jpg"
    exif = _exif(ImageDescription=json.dumps({"workflow": comfy_workflow}))
    Image.new("RGB", (8, 8)).save(path, "JPEG", exif=exif.tobytes())
    data = extract_jpeg_metadata(read_image_info(str(path)))
    assert data == {"workflow": comfy_workflow}


def test_jpeg_plain_user_comment_kept(tmp_path) -> None:
    info = {"exif": {"UserComment": b"ASCII\x00\x00\x00hello there"}, "text": {}}
    assert extract_jpeg_metadata(info) == {"user_comment": "hello there"}


def test_jpeg_workflow_in_raw_exif_blob(comfy_workflow) -> None:
    blob = b"Exif\x00\x00garbage" + json.dumps(comfy_workflow).encode() + b"\x00tail"
    info = {"exif": {}, "text": {}, "exif_raw": blob}
    assert extract_jpeg_metadata(info) == {"workflow": comfy_workflow}


def test_jpeg_without_metadata(tmp_path) -> None:
    path = tmp_path / "plain.jpg"
    Image.new("RGB", (8, 8)).save(path, "JPEG")
    assert extract_jpeg_metadata(read_image_info(str(path))) is None


@pytest.mark.skipif(not features.check("webp"), reason="Pillow built without WebP")
def test_webp_comfy_make_and_model_fields(tmp_path, comfy_workflow, prompt_graph) -> None:
    path = tmp_path / "c.webp"
    exif = _exif(Make="workflow:" + json.dumps(comfy_workflow), Model="prompt:" + json.dumps(prompt_graph))
    Image.new("RGB", (8, 8)).save(path, "WEBP", exif=exif.tobytes())

    info = read_image_info(str(path))
    assert info["format"] == "webp"
    data = extract_webp_metadata(info)
    assert data["workflow"] == comfy_workflow
    assert data["prompt"] == prompt_graph


def test_webp_unicode_user_comment() -> None:
    text = "portrait\nSteps: 12, CFG scale: 4"
    info = {"exif": {"UserComment": UNICODE_PREFIX + text.encode("utf-16-le")}, "text": {}}
    data = extract_webp_metadata(info)
    assert data["parameters"]["steps"] == 12
    assert data["parameters"]["cfg"] == 4.0


def test_webp_unicode_blob_fallback() -> None:
    text = "portrait\nSteps: 9"
    blob = b"Exif\x00\x00....." + UNICODE_PREFIX + text.encode("utf-16-le")
    data = extract_webp_metadata({"exif": {}, "text": {}, "exif_raw": blob})
    assert data["parameters"]["steps"] == 9


def test_webp_falls_back_to_png_keywords(comfy_workflow) -> None:
    info = {"exif": {}, "text": {"workflow": json.dumps(comfy_workflow)}}
    assert extract_webp_metadata(info) == {"workflow": comfy_workflow}
