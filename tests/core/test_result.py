import pytest

from xp_shared import ErrorCode, Result


def test_ok_and_err_constructors() -> None:
    ok = Result.Ok({"a": 1}, kind="image")
    assert ok.ok and ok.code == "OK" and ok.meta == {"kind": "image"}

    err = Result.Err(ErrorCode.PARSE_ERROR, "bad json", raw_data="{")
    assert not err.ok
    assert err.code == "PARSE_ERROR"
    assert err.meta == {"raw_data": "{"}


def test_map_unwrap_and_default() -> None:
    assert Result.Ok(2, tag="x").map(lambda v: v * 3).data == 6
    assert Result.Ok(2, tag="x").map(lambda v: v * 3).meta == {"tag": "x"}

    err = Result.Err("NOT_FOUND", "missing")
    assert err.map(lambda v: v * 3) is err
    assert err.unwrap_or(5) == 5
    with pytest.raises(ValueError, match=r"\[NOT_FOUND\] missing"):
        err.unwrap()

    assert Result.Ok(None).unwrap_or("fallback") == "fallback"
