"""Tests for path hashing and the reverse name map."""

import pytest

from qar_toolkit.hashing.name_map import (
    EXTENSION_MASK,
    FILE_NAME_MASK,
    EntryNameMap,
    entry_hash,
    hash_extension,
    hash_file_name,
)
from qar_toolkit.hashing.text_hash import (
    META_FLAG,
    hash_path,
    hash_path_without_extension,
    normalize_path,
    remove_extension,
    split_extension,
    string_seed,
)

# (path, hash_path, hash_path_without_extension), computed by the engine's hasher
PATH_VECTORS = [
    ("/Assets/tpp/pack/player/fova/pl_fova.fpk", 0x0003C85F0CE6DBFF, 0x00039E3136593EB0),
    ("/Assets/tpptest/foo.bar", 0x0004F435D7EAF165, 0x0006DEF8F53945CD),
    ("/Tpp/Scripts/Classes/TppMain.lua", 0x00069252FEF6301B, 0x00044ACFC12863C2),
    ("tpp/pack/a", 0x0006E34DF9857F3B, 0x0006E34DF9857F3B),
    ("/Assets/", 0x0000000000000000, 0x0000000000000000),
    ("", 0x0004000000000000, 0x0004000000000000),
    ("fpk", 0x0005A0F883F80A45, 0x0005A0F883F80A45),
    ("lua", 0x0005C5B1D427231C, 0x0005C5B1D427231C),
    ("dds", 0x00078F268629C674, 0x00078F268629C674),
    (
        "/Assets/tpp/level/location/afgh/block_common/afgh_common.fpkd",
        0x00038C5944BD9170,
        0x00002228E7DD8C6B,
    ),
]


class TestStringSeed:
    def test_last_eight_characters_reversed(self):
        assert string_seed("/Assets/tpp/pack/player/fova/pl_fova.fpk") == 0x666F76612E66706B

    def test_short_string_zero_padded(self):
        assert string_seed("fpk") == 0x000000000066706B

    def test_empty_string(self):
        assert string_seed("") == 0

    def test_wide_characters_truncated_to_a_byte(self):
        assert string_seed("Ł") == 0x41


class TestPathHelpers:
    def test_normalize_strips_assets_root(self):
        assert normalize_path("/Assets/tpp/pack/a.fpk") == "tpp/pack/a.fpk"

    def test_normalize_strips_leading_separators(self):
        assert normalize_path("///Tpp/a.lua") == "Tpp/a.lua"
        assert normalize_path("/Assets//tpp/a") == "tpp/a"

    def test_remove_extension_cuts_at_first_dot(self):
        assert remove_extension("tpp/a.fox2.xml") == "tpp/a"
        assert remove_extension("tpp/a") == "tpp/a"

    def test_split_extension(self):
        assert split_extension("/Assets/tpp/a.fpk") == ("/Assets/tpp/a", "fpk")
        assert split_extension("a.fox2.xml") == ("a", "fox2.xml")
        assert split_extension("/a.lua") == ("/a", "lua")
        assert split_extension("fpk") == ("fpk", "")


class TestHashPath:
    @pytest.mark.parametrize("path, expected, _", PATH_VECTORS)
    def test_hash_path(self, path, expected, _):
        assert hash_path(path) == expected

    @pytest.mark.parametrize("path, _, expected", PATH_VECTORS)
    def test_hash_path_without_extension(self, path, _, expected):
        assert hash_path_without_extension(path) == expected

    def test_meta_flag_outside_assets(self):
        assert hash_path("/Tpp/Scripts/a.lua") & META_FLAG

    def test_meta_flag_under_tpptest(self):
        assert hash_path("/Assets/tpptest/a.lua") & META_FLAG

    def test_no_meta_flag_under_assets(self):
        assert not hash_path("/Assets/tpp/a.lua") & META_FLAG

    def test_assets_prefix_only_changes_meta_flag(self):
        assert hash_path("/Assets/tpp/pack/a") | META_FLAG == hash_path("tpp/pack/a")


class TestEntryNameMap:
    def test_unknown_hash_renders_hex(self):
        name_map = EntryNameMap()
        assert name_map.resolve(0x00051234567890AB) == "11234567890ab.0"

    def test_resolve_known_name_and_extension(self):
        name_map = EntryNameMap()
        name_map.add_file_name("/Assets/tpp/pack/mission/m_001")
        name_map.add_extension("fpk")
        assert hash_file_name("/Assets/tpp/pack/mission/m_001") == 0x00012A0AD29E39F1
        assert hash_extension("fpk") == 0x0A45
        assert name_map.resolve(0x52292A0AD29E39F1) == "/Assets/tpp/pack/mission/m_001.fpk"

    def test_partially_known_hash(self):
        name_map = EntryNameMap()
        name_map.add_extension("fpk")
        assert name_map.resolve(0x52292A0AD29E39F1) == "12a0ad29e39f1.fpk"

    def test_add_path_registers_stem_and_extension(self):
        name_map = EntryNameMap()
        name_map.add_path("/Assets/tpp/pack/mission/m_001.fpk")
        assert len(name_map) == 1
        assert name_map.lookup_file_name(0x52292A0AD29E39F1) == "/Assets/tpp/pack/mission/m_001"
        assert name_map.lookup_extension(0x52292A0AD29E39F1) == "fpk"

    def test_meta_flag_is_ignored_by_lookup(self):
        name_map = EntryNameMap()
        name_map.add_file_name("/Assets/tpp/pack/mission/m_001")
        assert name_map.lookup_file_name(0x00012A0AD29E39F1 | META_FLAG) == "/Assets/tpp/pack/mission/m_001"

    def test_first_registration_wins(self):
        name_map = EntryNameMap()
        name_map.add_file_name("/Assets/tpp/a")
        name_map.add_file_name("tpp/a")  # same hash once the meta flag is masked
        assert name_map.lookup_file_name(hash_file_name("tpp/a")) == "/Assets/tpp/a"

    def test_entry_hash_matches_masks(self):
        value = entry_hash("/Assets/tpp/pack/mission/m_001.fpk")
        assert value == 0x52292A0AD29E39F1
        assert value & FILE_NAME_MASK == hash_file_name("/Assets/tpp/pack/mission/m_001")
        assert value >> 51 == hash_extension("fpk") & EXTENSION_MASK

    def test_load_skips_comments_and_blanks(self):
        name_map = EntryNameMap()
        name_map.load(["# names", "", "  /Assets/tpp/pack/mission/m_001.fpk  \n"])
        assert name_map.resolve(0x52292A0AD29E39F1) == "/Assets/tpp/pack/mission/m_001.fpk"

    def test_from_file(self, tmp_path):
        dictionary = tmp_path / "names.txt"
        dictionary.write_text("/Assets/tpp/pack/mission/m_001.fpk\n/Tpp/Scripts/a.lua\n", encoding="utf-8")
        name_map = EntryNameMap.from_file(dictionary)
        assert len(name_map) == 2
        assert name_map.lookup_extension(hash_extension("lua") << 51) == "lua"
