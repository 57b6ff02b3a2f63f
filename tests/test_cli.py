import sys
import os
import json
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from cartridge_engine.main import main
from cartridge_engine.species import national_to_internal


@pytest.fixture
def reference_files(tmp_path, species, configs):
    species_path = tmp_path / "species.json"
    species_path.write_text(json.dumps([
        {
            "national_id": s.national_id, "name": s.name, "types": list(s.types),
            "hp": s.hp, "attack": s.attack, "defense": s.defense,
            "sp_attack": s.sp_attack, "sp_defense": s.sp_defense, "speed": s.speed,
            "is_legendary": s.is_legendary, "generation": s.generation,
            "growth_rate": s.growth_rate.value,
        }
        for s in species
    ]))
    configs_path = tmp_path / "configs.json"
    configs_path.write_text(json.dumps([c.to_dict() for c in configs]))
    return str(species_path), str(configs_path)


@pytest.fixture
def red_rom(tmp_path, make_gb_rom):
    rom = make_gb_rom("POKEMON RED")
    rom[0x1000:0x1004] = bytes([3, national_to_internal(16), 4, national_to_internal(19)])
    path = tmp_path / "red.gb"
    path.write_bytes(bytes(rom))
    return path


def test_detect(red_rom, reference_files, capsys):
    _, configs_path = reference_files
    assert main(["detect", str(red_rom), "--configs", configs_path]) == 0
    assert "Pokemon Red" in capsys.readouterr().out


def test_detect_unknown(tmp_path, reference_files):
    _, configs_path = reference_files
    path = tmp_path / "blank.bin"
    path.write_bytes(bytes(0x8000))
    assert main(["detect", str(path), "--configs", configs_path]) == 1


def test_randomize(red_rom, reference_files, tmp_path):
    species_path, configs_path = reference_files
    output = tmp_path / "out.gb"
    code = main([
        "randomize", str(red_rom), "-o", str(output), "-s", "42", "--starters",
        "--species", species_path, "--configs", configs_path,
    ])
    assert code == 0

    original = red_rom.read_bytes()
    randomized = output.read_bytes()
    assert len(randomized) == len(original)
    assert randomized[0x1000] == 3 and randomized[0x1002] == 4
    allowed = {national_to_internal(n) for n in (1, 4, 7, 16, 19, 25)}
    assert {randomized[0x1001], randomized[0x1003]} <= allowed
    assert all(b in allowed for b in randomized[0x3000:0x3003])


def test_randomize_missing_file(tmp_path, reference_files):
    species_path, configs_path = reference_files
    code = main(["randomize", str(tmp_path / "nope.gb"), "--species", species_path, "--configs", configs_path])
    assert code == 1


def test_new_save_and_detect(tmp_path, reference_files, capsys):
    species_path, _ = reference_files
    output = tmp_path / "may.sav"
    code = main([
        "new-save", "emerald", "--name", "MAY", "--gender", "female", "--starter", "258",
        "--money", "9000", "-s", "1", "-o", str(output), "--species", species_path,
    ])
    assert code == 0
    assert output.stat().st_size == 0x20000

    assert main(["detect-save", str(output)]) == 0
    out = capsys.readouterr().out
    assert "MAY" in out
    assert "Money:      9000" in out
    assert "Checksum:   OK" in out


def test_new_save_bad_name(tmp_path):
    assert main(["new-save", "red", "--name", " ", "-o", str(tmp_path / "x.sav")]) == 1


def test_list_games(capsys):
    assert main(["list-games"]) == 0
    out = capsys.readouterr().out
    assert "emerald" in out
    assert "Mudkip" in out


def test_edit_save(tmp_path, capsys):
    save = tmp_path / "ash.sav"
    assert main(["new-save", "red", "--name", "ASH", "-s", "1", "-o", str(save)]) == 0
    edited = tmp_path / "edited.sav"
    code = main([
        "edit-save", str(save), "--name", "RED", "--money", "3000", "--badges", "0x0F",
        "--play-time", "10", "5", "0", "-o", str(edited),
    ])
    assert code == 0

    capsys.readouterr()
    assert main(["detect-save", str(edited)]) == 0
    out = capsys.readouterr().out
    assert "RED" in out
    assert "Money:      3000" in out
    assert "Badges:     4/8" in out
    assert "Play Time:  10:05:00" in out
    assert "Checksum:   OK" in out
    assert "(empty)" in out


def test_edit_save_unrecognized(tmp_path):
    path = tmp_path / "blank.sav"
    path.write_bytes(bytes(0x8000))
    assert main(["edit-save", str(path), "--money", "10"]) == 1
