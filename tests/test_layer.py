import pytest

from kv_layer.encoding import Encoding, decode, encode
from kv_layer.errors import EncodingError, InvalidKeyError, InvalidSelectorError, UnimplementedEncodingError
from kv_layer.keys import MAXIMUM
from kv_layer.layer import StoreLayer
from kv_layer.selectors import KeyRange, RangeSelector


def test_defaults_are_bytewise_keys_and_json_values() -> None:
    layer = StoreLayer()
    assert layer.key_encoding == Encoding.BYTEWISE
    assert layer.value_encoding == Encoding.JSON


def test_key_roundtrip() -> None:
    layer = StoreLayer()
    assert layer.decode_key(layer.encode_key(("users", 42, b"\x00"))) == ("users", 42, b"\x00")


@pytest.mark.parametrize("key", [None, "", b"", (), []])
def test_encode_key_rejects_missing_keys(key: object) -> None:
    with pytest.raises(InvalidKeyError, match="undefined, null or empty key"):
        _ = StoreLayer().encode_key(key)


@pytest.mark.parametrize("key", [0, False, (None,)])
def test_encode_key_accepts_falsy_but_present_keys(key: object) -> None:
    layer = StoreLayer()
    assert layer.decode_key(layer.encode_key(key)) == key


@pytest.mark.parametrize("data", [None, b""])
def test_decode_key_rejects_missing_data(data: bytes | None) -> None:
    with pytest.raises(InvalidKeyError):
        _ = StoreLayer().decode_key(data)


def test_none_value_is_the_absence_of_a_value() -> None:
    layer = StoreLayer()
    assert layer.encode_value(None) is None
    assert layer.decode_value(None) is None
    assert layer.encode_value("") == b'""'
    assert layer.decode_value(layer.encode_value({"a": [1, 2]})) == {"a": [1, 2]}


def test_bytewise_value_encoding() -> None:
    layer = StoreLayer(value_encoding="bytewise")
    assert layer.decode_value(layer.encode_value(("a", 1))) == ("a", 1)


def test_unknown_encodings_raise_encoding_error() -> None:
    layer = StoreLayer(value_encoding="yaml")
    with pytest.raises(EncodingError, match="unknown encoding: 'yaml'"):
        _ = layer.encode_value({"a": 1})
    with pytest.raises(EncodingError, match="unknown encoding"):
        _ = layer.decode_value(b"a: 1")
    with pytest.raises(EncodingError, match="unknown encoding"):
        _ = encode(1, "msgpack")
    with pytest.raises(EncodingError, match="unknown encoding"):
        _ = decode(b"\x01", "msgpack")


def test_json_errors_raise_encoding_error() -> None:
    with pytest.raises(EncodingError, match="not JSON serializable"):
        _ = encode({1, 2}, Encoding.JSON)
    with pytest.raises(EncodingError, match="malformed JSON"):
        _ = decode(b"{", Encoding.JSON)


def test_key_shape_helpers() -> None:
    layer = StoreLayer()
    assert layer.empty_key() == ()
    assert layer.minimum_key() == (None,)
    assert layer.maximum_key() == (MAXIMUM,)
    assert layer.normalize_key("a") == ("a",)
    assert layer.normalize_key(["a", 1]) == ("a", 1)
    assert layer.concat_keys(("a",), layer.maximum_key()) == ("a", MAXIMUM)
    assert layer.concat_keys((), ("a",)) == ("a",)
    assert layer.previous_key(("b",))[0] < "b"
    assert layer.next_key(("b",))[0] > "b"


def test_minimum_and_maximum_keys_bound_every_key() -> None:
    layer = StoreLayer()
    encoded = layer.encode(("a", 1), layer.key_encoding)
    assert layer.encode(layer.minimum_key(), layer.key_encoding) < encoded
    assert encoded < layer.encode(layer.maximum_key(), layer.key_encoding)


@pytest.mark.parametrize(
    "operation",
    [
        lambda layer: layer.previous_key(("a",)),
        lambda layer: layer.next_key(("a",)),
        lambda layer: layer.empty_key(),
        lambda layer: layer.minimum_key(),
        lambda layer: layer.maximum_key(),
        lambda layer: layer.normalize_key("a"),
        lambda layer: layer.concat_keys(("a",), ("b",)),
        lambda layer: layer.normalize_key_selectors({}),
    ],
)
def test_key_shape_operations_require_bytewise(operation) -> None:
    layer = StoreLayer(key_encoding="json")
    with pytest.raises(UnimplementedEncodingError, match="unimplemented key encoding: 'json'"):
        _ = operation(layer)


def test_json_keys_still_encode() -> None:
    layer = StoreLayer(key_encoding="json")
    assert layer.decode_key(layer.encode_key("alice")) == "alice"


def test_normalize_key_selectors_accepts_mappings_and_selectors() -> None:
    layer = StoreLayer()
    options = {"prefix": "a", "startAfter": "b"}
    from_mapping = layer.normalize_key_selectors(options)
    from_selector = layer.normalize_key_selectors(RangeSelector(prefix="a", start_after="b"))
    assert from_mapping == from_selector
    assert options == {"prefix": "a", "startAfter": "b"}
    assert layer.normalize_key_selectors() == KeyRange(start=(), end=(MAXIMUM,))
    with pytest.raises(InvalidSelectorError):
        _ = layer.normalize_key_selectors({"value": 1, "end": 2})


def test_views_share_the_root_configuration() -> None:
    root = StoreLayer(value_encoding="bytewise")
    view = root.view()
    nested = view.view()

    assert root.inside_transaction is False
    assert view.inside_transaction is True
    assert nested.inside_transaction is True
    assert view.root is root
    assert nested.root is root
    assert view.value_encoding == "bytewise"
    assert view.decode_value(root.encode_value(("a",))) == ("a",)
