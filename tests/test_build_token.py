"""Tests for the share-token codec.

The catalog mirrors a small real layout: CMD1 has a 3-node red tree with
level caps [2, 3, 1], a 1-node yellow tree, and a 2-node blue tree.
"""

from decimal import Decimal
from itertools import product

import pytest

from talent_planner.codec.build_token import (
    TOKEN_ALPHABET,
    build_query,
    decode_allocation,
    decode_build,
    encode_allocation,
    encode_build,
    token_from_query,
)
from talent_planner.engine.build import Build
from talent_planner.engine.errors import (
    DecodeError,
    LengthMismatch,
    MalformedToken,
    OverflowValue,
    UnknownCommander,
    VersionMismatch,
)
from talent_planner.engine.stat_aggregator import StatAggregator
from talent_planner.models.catalog import Catalog


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _catalog() -> Catalog:
    return Catalog.from_dict({
        "data_version": 1,
        "commanders": {"CMD1": {"name": "Commander One", "red": "R", "yellow": "Y", "blue": "B"}},
        "trees": {
            "R": {
                "1": {"name": "Alpha", "prereq": [], "stats": "Attack", "values": [1, 2]},
                "2": {"name": "Beta", "prereq": [1], "stats": ["Attack", "Health"], "values": [1.5, 3, 4.5]},
                "3": {"name": "Gamma", "kind": "major", "prereq": [2], "stats": None, "values": [10]},
            },
            "Y": {"1": {"name": "Delta", "stats": "Defense", "values": [5, 10, 15, 20]}},
            "B": {
                "1": {"name": "Epsilon", "stats": "March Speed", "values": [1, 2]},
                "2": {"name": "Zeta", "prereq": [1], "stats": "March Speed", "values": [3]},
            },
        },
    })


def _build(catalog: Catalog, red, yellow, blue, version: int = 1) -> Build:
    raw = Build(commander_id="CMD1", red=tuple(red), yellow=tuple(yellow), blue=tuple(blue), data_version=version)
    stats = StatAggregator(catalog).recompute(raw)
    return Build(
        commander_id="CMD1", red=tuple(red), yellow=tuple(yellow), blue=tuple(blue),
        stats=stats, data_version=version,
    )


# ===========================================================================
# Allocation fields
# ===========================================================================


class TestAllocationField:
    def test_alphabet_is_a_bijection_over_digits(self):
        assert len(TOKEN_ALPHABET) == 10
        assert len(set(TOKEN_ALPHABET)) == 10
        for digit in range(10):
            field = encode_allocation([digit])
            assert len(field) == 1
            assert decode_allocation(field) == (digit,)

    def test_alphabet_is_url_safe(self):
        assert all(ch.isalnum() and ch.isascii() for ch in TOKEN_ALPHABET)

    def test_preserves_order_and_length(self):
        levels = (0, 1, 2, 3, 9, 0)
        field = encode_allocation(levels)
        assert len(field) == len(levels)
        assert decode_allocation(field) == levels

    def test_empty_field(self):
        assert encode_allocation([]) == ""
        assert decode_allocation("") == ()

    def test_level_above_nine_cannot_be_encoded(self):
        with pytest.raises(ValueError, match="cannot be encoded"):
            encode_allocation([10])

    def test_invalid_character(self):
        with pytest.raises(MalformedToken, match="Invalid character"):
            decode_allocation("0x0")


# ===========================================================================
# Whole tokens
# ===========================================================================


class TestEncode:
    def test_field_layout(self):
        catalog = _catalog()
        token = encode_build(_build(catalog, [0, 0, 0], [3], [0, 0]))
        version, commander, red, yellow, blue = token.split(";")
        assert version == "1"
        assert commander == "CMD1"
        assert (len(red), len(yellow), len(blue)) == (3, 1, 2)
        assert yellow == TOKEN_ALPHABET[3]

    def test_empty_build_cannot_be_encoded(self):
        with pytest.raises(ValueError, match="without a commander"):
            encode_build(Build())

    def test_separator_clash_cannot_be_encoded(self):
        build = _build(_catalog(), [0, 0, 0], [0], [0, 0])
        with pytest.raises(ValueError, match="clashes"):
            encode_build(build, separator="1")
        with pytest.raises(ValueError, match="clashes"):
            encode_build(build, separator="M")

    def test_query_round_trip(self):
        catalog = _catalog()
        build = _build(catalog, [2, 1, 0], [0], [0, 0])
        query = build_query(build)
        assert query.startswith("?")
        assert decode_build(token_from_query(query), catalog) == build


class TestDecodeScenarios:
    def test_unknown_commander(self):
        with pytest.raises(UnknownCommander):
            decode_build("3;UNKNOWN;000;0;00", _catalog())

    def test_known_commander_with_partial_prerequisites(self):
        catalog = _catalog()
        build = decode_build("1;CMD1;210;0;00", catalog)
        assert build.commander_id == "CMD1"
        assert build.red == (1, 2, 0)
        assert build.yellow == (0,)
        assert build.blue == (0, 0)
        alpha, beta = catalog.tree("R").node(1), catalog.tree("R").node(2)
        # Alpha at level 1 plus Beta at level 2; Beta also feeds Health.
        assert build.stats["Attack"] == alpha.values[0] + beta.values[1]
        assert build.stats["Attack"] == Decimal(4)
        assert build.stats["Health"] == Decimal(3)
        assert build.stats["Defense"] == 0

    def test_decoded_version_is_kept(self):
        catalog = Catalog.from_dict(_catalog_dict_with_version(3))
        build = decode_build("2;CMD1;000;0;00", catalog)
        assert build.data_version == 2


def _catalog_dict_with_version(version: int) -> dict:
    return {
        "data_version": version,
        "commanders": {"CMD1": {"name": "C", "red": "R", "yellow": "Y", "blue": "B"}},
        "trees": {
            "R": {str(i): {"name": f"R{i}", "values": [1]} for i in (1, 2, 3)},
            "Y": {"1": {"name": "Y1", "values": [1]}},
            "B": {str(i): {"name": f"B{i}", "values": [1]} for i in (1, 2)},
        },
    }


class TestDecodeRejections:
    @pytest.mark.parametrize("token", [
        "",
        "1;CMD1;000;0",
        "1;CMD1;000;0;00;extra",
        "1,CMD1,000,0,00",
    ])
    def test_wrong_field_count(self, token):
        with pytest.raises(MalformedToken, match="number of build parameters"):
            decode_build(token, _catalog())

    @pytest.mark.parametrize("version", ["x", "-1", "1.0", ""])
    def test_version_must_be_non_negative_integer(self, version):
        with pytest.raises(MalformedToken, match="Version"):
            decode_build(f"{version};CMD1;000;0;00", _catalog())

    def test_newer_version(self):
        with pytest.raises(VersionMismatch):
            decode_build("2;CMD1;000;0;00", _catalog())

    def test_older_version_is_accepted(self):
        build = decode_build("0;CMD1;000;0;00", _catalog())
        assert build.data_version == 0

    def test_length_mismatch_names_color(self):
        with pytest.raises(LengthMismatch, match="yellow") as info:
            decode_build("1;CMD1;000;00;00", _catalog())
        assert info.value.color == "yellow"
        assert info.value.kind == "length_mismatch"

    def test_level_above_cap(self):
        # Gamma (red #3) has a cap of 1.
        field = encode_allocation([0, 0, 2])
        with pytest.raises(OverflowValue, match="Gamma"):
            decode_build(f"1;CMD1;{field};0;00", _catalog())

    def test_invalid_character_in_field(self):
        with pytest.raises(MalformedToken, match="blue"):
            decode_build("1;CMD1;000;0;0!", _catalog())

    def test_oversized_version_is_a_decode_error(self):
        # Longer than the interpreter will convert to int.
        with pytest.raises(DecodeError):
            decode_build("9" * 5000 + ";CMD1;000;0;00", _catalog())

    def test_all_errors_share_base_class(self):
        for token in ("bad", "1;NOPE;000;0;00", "9;CMD1;000;0;00"):
            with pytest.raises(DecodeError):
                decode_build(token, _catalog())


# ===========================================================================
# Round trip
# ===========================================================================


def test_round_trip_every_valid_allocation():
    catalog = _catalog()
    red_caps = catalog.tree("R").level_caps
    blue_caps = catalog.tree("B").level_caps
    yellow_cap = catalog.tree("Y").level_caps[0]
    seen = 0
    for red, yellow, blue in product(
        product(*(range(cap + 1) for cap in red_caps)),
        range(yellow_cap + 1),
        product(*(range(cap + 1) for cap in blue_caps)),
    ):
        build = _build(catalog, red, [yellow], blue)
        assert decode_build(encode_build(build), catalog) == build
        seen += 1
    # 3*4*2 red, 5 yellow, 3*2 blue
    assert seen == 24 * 5 * 6


def test_token_from_query():
    assert token_from_query(None) is None
    assert token_from_query("") is None
    assert token_from_query("?") is None
    assert token_from_query("  ") is None
    assert token_from_query("?1;CMD1;000;0;00") == "1;CMD1;000;0;00"
    assert token_from_query("1;CMD1;000;0;00") == "1;CMD1;000;0;00"
