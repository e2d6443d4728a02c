import pytest
import fetchbody
from fetchbody.utils import INT_TO_URLENC, is_known_encoding


@pytest.mark.parametrize(
    ["parts", "expected"],
    [
        (b"abc", b"abc"),
        ("é", b"\xc3\xa9"),
        ([b"a", bytearray(b"b"), memoryview(b"c")], b"abc"),
        ([fetchbody.Blob("x"), "y"], b"xy"),
        ((), b""),
    ],
)
def test_blob_parts(parts, expected):
    blob = fetchbody.Blob(parts)

    assert bytes(blob) == expected
    assert blob.size == len(expected)
    assert blob.type is None


def test_blob_type_is_lowercased():
    assert fetchbody.Blob(b"", type="IMAGE/PNG").type == "image/png"
    assert fetchbody.Blob(b"", type="").type is None


def test_url_encoded_form_str():
    form = fetchbody.URLEncodedForm({"a": "1 2", "b": ["x", "y"]})

    assert str(form) == "a=1+2&b=x&b=y"
    assert repr(form) == "<URLEncodedForm 'a=1+2&b=x&b=y'>"


@pytest.mark.parametrize(
    ["byte", "encoded"],
    [(0x20, b"+"), (0x2F, b"%2F"), (0x3A, b"%3A"), (0x40, b"%40"), (0x00, b"%00")],
)
def test_urlenc_table(byte, encoded):
    assert INT_TO_URLENC[byte] == encoded


def test_multipart_form_fields():
    form = fetchbody.MultipartForm()
    field = form.add_field("file", fetchbody.Blob(b"data"), filename="a.txt")

    assert form.fields == [field]
    assert field.name == "file"
    assert field.filename == "a.txt"


def test_multipart_encoder_is_abstract():
    with pytest.raises(NotImplementedError):
        fetchbody.MultipartEncoder().adapt(fetchbody.MultipartForm())


@pytest.mark.parametrize(
    ["encoding", "expected"],
    [("UTF-8", "utf-8"), ("latin1", "iso8859-1"), ("not-a-codec", None)],
)
def test_is_known_encoding(encoding, expected):
    assert is_known_encoding(encoding) == expected
