"""End-to-end tests for the ``gecko build`` command.

WHY: The CLI is where the whole pipeline comes together, and where the
"no output is written if anything fails" guarantee is enforced.

HOW: Each test writes a codes.json project under tmp_path and runs main()
with the assembler backend replaced by the fake one from conftest.

RULES:
- The resolver's select_backend is patched; no test needs devkitPPC
- Failures are asserted through SystemExit codes and stderr
"""

import json

import pytest

from gecko_builder import cli
from gecko_builder.errors import CompileError, ConfigError
from gecko_builder.toolchain import resolver as resolver_module

from conftest import FakeBackend, asm_source


class _FailingBackend(FakeBackend):
    def _assemble(self, workdir, source, cwd):
        raise CompileError(
            "Failed to compile file: {}".format(source),
            source=source,
            output="hook.asm:1: Error: unrecognized opcode: `lii'\n",
        )


@pytest.fixture
def use_backend(monkeypatch):
    def _use(backend):
        monkeypatch.setattr(resolver_module, "select_backend", lambda name=None: backend)
        return backend

    return _use


def _write_project(tmp_path, codes, output_files=("codes.txt", "codes.gct")):
    path = tmp_path / "codes.json"
    path.write_text(
        json.dumps({"outputFiles": list(output_files), "codes": codes}),
        encoding="utf-8",
    )
    return path


SINGLE_REPLACE = [
    {
        "name": "Name",
        "authors": ["Author"],
        "description": ["Desc"],
        "build": [
            {"type": "replace", "address": "80001234", "value": "60000000", "annotation": "nop"},
        ],
    }
]


class TestBuildCommand:
    def test_single_replace_text_and_gct(self, tmp_path, use_backend):
        use_backend(FakeBackend())
        config = _write_project(tmp_path, SINGLE_REPLACE)

        cli.main(["build", "--config", str(config)])

        text = (tmp_path / "codes.txt").read_bytes()
        assert text == b"$Name [Author]\n*Desc\n04001234 60000000 #nop\n"

        gct = (tmp_path / "codes.gct").read_bytes()
        assert gct == bytes.fromhex("00D0C0DE00D0C0DE" "0400123460000000" "F000000000000000")
        assert len(gct) == 24

    def test_status_messages(self, tmp_path, use_backend, capsys):
        use_backend(FakeBackend())
        config = _write_project(tmp_path, SINGLE_REPLACE, output_files=("codes.gct",))

        cli.main(["build", "--config", str(config)])

        err = capsys.readouterr().err
        assert "Writing to {}...".format(tmp_path / "codes.gct") in err
        assert "Successfully wrote codes to {}".format(tmp_path / "codes.gct") in err

    def test_inject_folder_project(self, tmp_path, use_backend):
        use_backend(FakeBackend())
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "a.asm").write_text(
            asm_source("38600001", header="# Inject @ 80001000"), encoding="utf-8"
        )
        (tmp_path / "src" / "b.asm").write_text(
            asm_source("38600002", "4E800020", header="# Inject @ 80002000"), encoding="utf-8"
        )
        (tmp_path / "src" / "readme.txt").write_text("80009999", encoding="utf-8")
        config = _write_project(
            tmp_path,
            [{"name": "Mod", "authors": ["Ann"], "build": [{"type": "injectFolder", "sourceFolder": "src"}]}],
            output_files=("mod.txt",),
        )

        cli.main(["build", "--config", str(config)])

        assert (tmp_path / "mod.txt").read_text(encoding="utf-8").split("\n") == [
            "$Mod [Ann]",
            "04001000 38600001 #src/a.asm",
            "C2002000 00000002 #src/b.asm",
            "38600002 4E800020",
            "60000000 00000000",
            "",
        ]

    def test_output_flag_replaces_configured_files(self, tmp_path, use_backend, monkeypatch):
        use_backend(FakeBackend())
        config = _write_project(tmp_path, SINGLE_REPLACE)
        out_dir = tmp_path / "out"
        out_dir.mkdir()
        monkeypatch.chdir(out_dir)

        cli.main(["build", "--config", str(config), "--output", "custom.gct"])

        assert (out_dir / "custom.gct").is_file()
        assert not (tmp_path / "codes.gct").exists()
        assert not (tmp_path / "codes.txt").exists()

    def test_run_build_returns_written_paths(self, tmp_path, use_backend):
        use_backend(FakeBackend())
        config = _write_project(tmp_path, SINGLE_REPLACE)
        assert cli.run_build(str(config)) == [tmp_path / "codes.txt", tmp_path / "codes.gct"]


class TestFailures:
    def test_compile_error_writes_nothing(self, tmp_path, use_backend, capsys):
        use_backend(_FailingBackend())
        (tmp_path / "hook.asm").write_text("lii r3, 1", encoding="utf-8")
        codes = SINGLE_REPLACE + [
            {"name": "Hook", "build": [{"type": "inject", "address": "80003000", "sourceFile": "hook.asm"}]}
        ]
        config = _write_project(tmp_path, codes)

        with pytest.raises(SystemExit) as excinfo:
            cli.main(["build", "--config", str(config)])

        assert excinfo.value.code == 1
        err = capsys.readouterr().err
        assert "Error: Failed to compile file: hook.asm" in err
        assert "unrecognized opcode" in err
        assert not (tmp_path / "codes.txt").exists()
        assert not (tmp_path / "codes.gct").exists()

    def test_missing_config(self, tmp_path, use_backend, capsys):
        use_backend(FakeBackend())
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["build", "--config", str(tmp_path / "codes.json")])
        assert excinfo.value.code == 1
        assert "Failed to read config file" in capsys.readouterr().err

    def test_format_error(self, tmp_path, use_backend, capsys):
        use_backend(FakeBackend())
        codes = [{"name": "Bad", "build": [{"type": "replace", "address": "1234", "value": "60000000"}]}]
        config = _write_project(tmp_path, codes)
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["build", "--config", str(config)])
        assert excinfo.value.code == 1
        assert "address must be 8 hex digits" in capsys.readouterr().err

    def test_no_backend_needed_without_sources(self, tmp_path, monkeypatch):
        def _unsupported(name=None):
            raise ConfigError("Platform unsupported: sunos5")

        monkeypatch.setattr(resolver_module, "select_backend", _unsupported)
        config = _write_project(tmp_path, SINGLE_REPLACE, output_files=("codes.txt",))

        cli.main(["build", "--config", str(config)])

        assert (tmp_path / "codes.txt").is_file()

    def test_backend_selected_when_source_compiles(self, tmp_path, monkeypatch, capsys):
        def _unsupported(name=None):
            raise ConfigError("Platform unsupported: sunos5")

        monkeypatch.setattr(resolver_module, "select_backend", _unsupported)
        (tmp_path / "hook.asm").write_text(asm_source("38600001"), encoding="utf-8")
        codes = [{"name": "Hook", "build": [{"type": "inject", "address": "80003000", "sourceFile": "hook.asm"}]}]
        config = _write_project(tmp_path, codes)

        with pytest.raises(SystemExit) as excinfo:
            cli.main(["build", "--config", str(config)])

        assert excinfo.value.code == 1
        assert "Platform unsupported" in capsys.readouterr().err

    def test_failed_write_keeps_earlier_outputs_untouched(self, tmp_path, use_backend, capsys):
        use_backend(FakeBackend())
        (tmp_path / "codes.txt").write_text("old list\n", encoding="utf-8")
        config = _write_project(tmp_path, SINGLE_REPLACE, output_files=("codes.txt", "missing/codes.gct"))

        with pytest.raises(SystemExit) as excinfo:
            cli.main(["build", "--config", str(config)])

        assert excinfo.value.code == 1
        assert "Failed to write" in capsys.readouterr().err
        assert (tmp_path / "codes.txt").read_text(encoding="utf-8") == "old list\n"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["codes.json", "codes.txt"]

    def test_existing_outputs_are_replaced(self, tmp_path, use_backend):
        use_backend(FakeBackend())
        (tmp_path / "codes.txt").write_text("old list\n", encoding="utf-8")
        config = _write_project(tmp_path, SINGLE_REPLACE, output_files=("codes.txt",))

        cli.main(["build", "--config", str(config)])

        assert (tmp_path / "codes.txt").read_bytes() == b"$Name [Author]\n*Desc\n04001234 60000000 #nop\n"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["codes.json", "codes.txt"]

    def test_command_is_required(self):
        with pytest.raises(SystemExit) as excinfo:
            cli.main([])
        assert excinfo.value.code == 2

    def test_only_build_is_supported(self):
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["clean"])
        assert excinfo.value.code == 2


class TestParser:
    def test_build_defaults(self):
        args = cli.build_parser().parse_args(["build"])
        assert args.command == "build"
        assert args.output is None
        assert args.backend is None
        assert args.verbose == 0

    def test_repeatable_output_and_verbosity(self):
        args = cli.build_parser().parse_args(
            ["build", "--output", "a.gct", "--output", "a.txt", "-vv", "--backend", "eabi"]
        )
        assert args.output == ["a.gct", "a.txt"]
        assert args.verbose == 2
        assert args.backend == "eabi"
