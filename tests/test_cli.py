"""
Tests for the command line front end
"""
import json
import zipfile

from conftest import corrupt_entry, write_zip


class TestCli:

    def test_no_command(self, tmp_path, capsys):
        from rive2d.cli import main
        assert main(["--settings", str(tmp_path / "s.json")]) == 2

    def test_extract(self, tmp_path, capsys, encrypted_lpk):
        from rive2d.cli import main

        lpk = encrypted_lpk()
        out = tmp_path / "out"
        code = main(["--settings", str(tmp_path / "s.json"), "extract", str(lpk), "-o", str(out)])

        assert code == 0
        lines = capsys.readouterr().out.strip().splitlines()
        assert lines[-1].endswith("Test_Model.model3.json")
        assert "Decrypted 3 entries" in lines[0]

    def test_extract_uses_output_root(self, tmp_path, capsys):
        from rive2d.cli import main

        settings = tmp_path / "s.json"
        settings.write_text(json.dumps({"output_root": str(tmp_path / "library")}), encoding="utf-8")
        lpk = write_zip(tmp_path / "hiyori.lpk", {"hiyori.model3.json": b"{}"})

        assert main(["--settings", str(settings), "extract", str(lpk)]) == 0
        assert (tmp_path / "library" / "hiyori" / "hiyori.model3.json").exists()

    def test_extract_failure(self, tmp_path, capsys):
        from rive2d.cli import main

        lpk = write_zip(tmp_path / "empty.lpk", {"readme.txt": b"hi"})
        code = main(["--settings", str(tmp_path / "s.json"), "extract", str(lpk), "-o", str(tmp_path / "o")])

        assert code == 1
        assert "Extraction failed" in capsys.readouterr().out

    def test_extract_corrupt_entry(self, tmp_path, capsys):
        from rive2d.cli import main

        lpk = write_zip(tmp_path / "c.lpk", {"c.model3.json": b'{"Version": 3}' * 20},
                        compression=zipfile.ZIP_DEFLATED)
        corrupt_entry(lpk, "c.model3.json")
        code = main(["--settings", str(tmp_path / "s.json"), "extract", str(lpk), "-o", str(tmp_path / "o")])

        assert code == 1
        assert "Extraction failed" in capsys.readouterr().out

    def test_bad_settings_type(self, tmp_path, capsys):
        from rive2d.cli import main

        settings = tmp_path / "s.json"
        settings.write_text(json.dumps({"log_level": 10}), encoding="utf-8")
        lpk = write_zip(tmp_path / "a.lpk", {"a.model3.json": b"{}"})

        assert main(["--settings", str(settings), "extract", str(lpk)]) == 2
        assert "Invalid settings file" in capsys.readouterr().out

    def test_extract_missing_file(self, tmp_path, capsys):
        from rive2d.cli import main

        code = main(["--settings", str(tmp_path / "s.json"), "extract", str(tmp_path / "nope.lpk")])
        assert code == 2

    def test_inspect(self, tmp_path, capsys, encrypted_lpk):
        from rive2d.cli import main

        code = main(["--settings", str(tmp_path / "s.json"), "inspect", str(encrypted_lpk())])

        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["kind"] == "encrypted"
        assert data["name"] == "Test Model"
        assert data["requires_sidecar"] is False

    def test_inspect_plain(self, tmp_path, capsys):
        from rive2d.cli import main

        lpk = write_zip(tmp_path / "p.lpk", {"a.model3.json": b"{}"})
        assert main(["--settings", str(tmp_path / "s.json"), "inspect", str(lpk)]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data == {"kind": "plain", "entries": ["a.model3.json"]}

    def test_find(self, tmp_path, capsys):
        from rive2d.cli import main

        (tmp_path / "m").mkdir()
        (tmp_path / "m" / "a.model.json").write_text("{}", encoding="utf-8")

        assert main(["--settings", str(tmp_path / "s.json"), "find", str(tmp_path / "m")]) == 0
        assert capsys.readouterr().out.strip().endswith("a.model.json")
        assert main(["--settings", str(tmp_path / "s.json"), "find", str(tmp_path / "empty")]) == 2
