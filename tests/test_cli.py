"""Tests for the linkmatrix command line."""

from linkmatrix.cli import main


class TestStats:
    def test_prints_counts(self, vault, capsys):
        assert main(["stats", str(vault)]) == 0
        out = capsys.readouterr().out
        assert "6 documents, 7 links" in out
        assert "Home.md" in out

    def test_missing_vault(self, tmp_path, capsys):
        assert main(["stats", str(tmp_path / "missing")]) == 1
        assert "Error" in capsys.readouterr().err


class TestSquares:
    def test_all_depths(self, vault, capsys):
        assert main(["squares", str(vault)]) == 0
        out = capsys.readouterr().out
        assert "Projects/Archive" in out
        assert "Reading" in out

    def test_bad_depth(self, vault, capsys):
        assert main(["squares", str(vault), "--depth", "5"]) == 1
        assert "depth 5" in capsys.readouterr().err


class TestLinks:
    def test_outgoing_and_incoming(self, vault, capsys):
        assert main(["links", str(vault), "Home"]) == 0
        out = capsys.readouterr().out
        assert "-> Projects/Alpha.md" in out
        assert "<- Reading/Books.md" in out

    def test_unknown_document(self, vault, capsys):
        assert main(["links", str(vault), "Nowhere"]) == 1


class TestRender:
    def test_output_dir(self, vault, tmp_path, capsys):
        out = tmp_path / "images"
        out.mkdir()
        assert main(["render", str(vault), "--output-dir", str(out)]) == 0
        assert "Saved" in capsys.readouterr().out
        files = list(out.glob("adj *.png"))
        assert len(files) == 1

    def test_config_option(self, vault, tmp_path, capsys):
        config = tmp_path / "custom.yaml"
        config.write_text("export_name_prefix: custom\n")
        out = tmp_path / "images"
        out.mkdir()
        assert main(["--config", str(config), "render", str(vault), "--output-dir", str(out)]) == 0
        assert len(list(out.glob("custom *.png"))) == 1


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out
