from __future__ import annotations

import pytest

from smartcomp.core.codec_huffman import (
    CodecHuffman,
    build_code_table,
    build_freq_table,
    build_huffman_tree,
    pack_bits,
    unpack_bits,
)
from smartcomp.errors import EmptyInput, MalformedEncoding


def test_freq_table_keeps_first_appearance_order() -> None:
    freq = build_freq_table("abracadabra")
    assert list(freq.items()) == [("a", 5), ("b", 2), ("r", 2), ("c", 1), ("d", 1)]


def test_tree_shape_counts() -> None:
    root = build_huffman_tree(build_freq_table("abracadabra"))
    assert root is not None

    leaves = 0
    internal = 0
    stack = [root]
    while stack:
        n = stack.pop()
        if n.is_leaf():
            leaves += 1
        else:
            internal += 1
            stack += [n.left, n.right]
    assert leaves == 5
    assert internal == 4
    assert root.freq == 11


def test_code_table_exact_abracadabra() -> None:
    # merged nodes queue ahead of equal-frequency nodes -> this exact table, every time
    res = CodecHuffman().compress("abracadabra")
    assert res.code_table == {"a": "0", "r": "10", "c": "1100", "d": "1101", "b": "111"}
    assert res.bitstring == "01111001100011010111100"
    assert res.bit_length == 23
    assert res.compressed_size == 3
    assert res.original_size == 11
    assert res.ratio == pytest.approx(11 / 3)


def test_merged_node_pops_before_equal_frequency_leaf() -> None:
    # a,b merge to 2 and must be taken before the leaf d (also 2)
    res = CodecHuffman().compress("abcdd")
    assert res.code_table == {"d": "0", "c": "10", "a": "110", "b": "111"}


def test_newest_merge_pops_before_older_merge() -> None:
    # a+b and c+d both weigh 2: c+d is newer, so it is the left child of their parent
    table = build_code_table(build_huffman_tree({"a": 1, "b": 1, "c": 1, "d": 1, "e": 2}))
    assert table == {"e": "0", "c": "100", "d": "101", "a": "110", "b": "111"}


def test_code_table_is_prefix_free() -> None:
    table = build_code_table(build_huffman_tree(build_freq_table("the quick brown fox")))
    codes = list(table.values())
    for a in codes:
        for b in codes:
            if a != b:
                assert not b.startswith(a)


def test_single_symbol_short_circuit() -> None:
    res = CodecHuffman().compress("zzzzzzzzz")
    assert res.code_table == {"z": "0"}
    assert res.bitstring == "0" * 9
    assert res.compressed_size == 2
    assert CodecHuffman().decompress(res.bitstring, res.code_table) == "zzzzzzzzz"


@pytest.mark.parametrize(
    "payload",
    ["aaaaaaaaaa", "abcabcabcabc", "abracadabra", "żółw żółw ☃", "a\nb\tc|d,e"],
)
def test_roundtrip_text(payload: str) -> None:
    codec = CodecHuffman()
    res = codec.compress(payload)
    assert codec.decompress(res.bitstring, res.code_table) == payload
    assert codec.decompress_packed(res.packed(), res.bit_length, res.code_table) == payload


def test_roundtrip_bytes() -> None:
    codec = CodecHuffman()
    data = bytes(range(40)) * 3 + b"\x00" * 50
    res = codec.compress(data)
    assert codec.decompress(res.bitstring, res.code_table, binary=True) == data


def test_empty_input() -> None:
    with pytest.raises(EmptyInput):
        CodecHuffman().compress("")
    with pytest.raises(EmptyInput):
        CodecHuffman().compress(b"")


def test_pack_unpack_bits() -> None:
    assert pack_bits("") == (b"", 0)
    assert pack_bits("101") == (b"\xa0", 3)
    assert pack_bits("11111111") == (b"\xff", 8)
    assert pack_bits("111111110") == (b"\xff\x00", 1)
    assert unpack_bits(b"\xa0", 3) == "101"
    with pytest.raises(MalformedEncoding):
        unpack_bits(b"\xa0", 9)


def test_dangling_prefix_rejected() -> None:
    table = {"a": "0", "b": "10"}
    with pytest.raises(MalformedEncoding, match="dangling"):
        CodecHuffman().decompress("0101", table)


def test_unmatched_candidate_is_bounded() -> None:
    table = {"a": "0", "b": "10"}
    with pytest.raises(MalformedEncoding, match="no code matches"):
        CodecHuffman().decompress("0110", table)


@pytest.mark.parametrize(
    "table",
    [
        {},
        {"a": "0", "b": "01"},
        {"a": "0", "b": "0"},
        {"a": "", "b": "1"},
        {"a": "0", "b": "12"},
    ],
)
def test_invalid_code_table_rejected(table: dict[str, str]) -> None:
    with pytest.raises(MalformedEncoding):
        CodecHuffman().decompress("0", table)


def test_non_binary_bitstring_rejected() -> None:
    with pytest.raises(MalformedEncoding):
        CodecHuffman().decompress("0x", {"a": "0", "b": "1"})
