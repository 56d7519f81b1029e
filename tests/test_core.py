from apitable.core import ApiTableService
from apitable.providers.manifest import ManifestProvider
from apitable.providers.python_module import PythonModuleProvider
from apitable.renderer import FOOTER, NO_MEMBERS


def run(app_config, logger, path):
    return ApiTableService(app_config=app_config, logger=logger).run(path)


def test_point_scenario(app_config, logger, write_file):
    path = write_file(
        "geometry.py",
        """
        class Point:
            def __init__(self, x: int) -> None:
                self._x = x

            @property
            def X(self) -> int:
                return self._x

            def ToString(self) -> str:
                return str(self._x)
        """,
    )
    lines = run(app_config, logger, path)

    assert lines == [
        "# API table",
        "",
        "## Point",
        "",
        "| Category | Name        | Type | Tested |",
        "| -------- | ----------- | ---- | ------ |",
        "| Property | X           | int  |        |",
        "| Method   | ToString( ) | str  |        |",
        "",
        "----",
        "",
        FOOTER,
    ]


def test_runs_are_byte_identical(app_config, logger, write_file):
    path = write_file(
        "inventory.yaml",
        """
        module: Inventory
        types:
          - name: Item
            members:
              - {kind: property, name: Sku, type: string}
              - {kind: method, name: Restock, returns: void, parameters: [{name: count, type: int}]}
          - name: Empty
        """,
    )

    assert run(app_config, logger, path) == run(app_config, logger, path)


def test_whole_module_failure_still_writes_footer(app_config, logger, tmp_path):
    lines = run(app_config, logger, tmp_path / "missing.py")

    assert lines[0].startswith("Could not load file or module")
    assert not any(line.startswith("## ") for line in lines)
    assert "# API table" in lines
    assert lines[-1] == FOOTER


def test_malformed_extension_still_writes_footer(app_config, logger, broken_extension):
    lines = run(app_config, logger, broken_extension)

    assert lines[0].startswith("Could not load module 'native'")
    assert lines.index("# API table") > 1
    assert not any(line.startswith("## ") for line in lines)
    assert lines[-1] == FOOTER


def test_exit_at_import_still_writes_footer(app_config, logger, write_file):
    path = write_file("quits.py", "import sys\nsys.exit(3)\n")

    lines = run(app_config, logger, path)

    title = lines.index("# API table")
    assert lines[0].startswith("Could not load module 'quits'")
    assert "Module exited during import with status 3." in lines[:title]
    assert not any(line.startswith("## ") for line in lines)
    assert lines[-1] == FOOTER


def test_missing_dependency_diagnostic_precedes_report(app_config, logger, write_file):
    path = write_file(
        "shapes.py",
        """
        import geometry_core


        class Circle:
            pass
        """,
    )
    lines = run(app_config, logger, path)

    title = lines.index("# API table")
    diagnostics = lines[:title]
    assert diagnostics[0].startswith("Could not load module 'shapes'")
    assert "No module named 'geometry_core'" in diagnostics
    assert "Resolution Log:" in diagnostics
    assert "## Circle" not in lines


def test_partial_failure_reports_surviving_types(app_config, logger, write_file):
    path = write_file(
        "shapes.yaml",
        """
        module: Shapes
        types:
          - name: Square
            members:
              - {kind: property, name: Side, type: double}
          - name: Circle
            requires: [Geometry.Core]
        """,
    )
    lines = run(app_config, logger, path)

    title = lines.index("# API table")
    assert lines[0] == "Could not load file or module 'Geometry.Core' required by type 'Circle'."
    assert lines[1] == "Resolution Log:"
    assert lines[title - 2 : title] == ["", ""]
    assert "## Square" in lines
    assert "## Circle" not in lines


def test_private_only_type_gets_no_members_sentence(app_config, logger, write_file):
    path = write_file(
        "vault.py",
        """
        class Vault:
            def __init__(self) -> None:
                self._secret = 1

            _hidden = 2
        """,
    )
    lines = run(app_config, logger, path)

    idx = lines.index("## Vault")
    assert lines[idx + 2] == NO_MEMBERS


def test_provider_selection(app_config, logger, tmp_path):
    service = ApiTableService(app_config=app_config, logger=logger)

    assert isinstance(service.provider_for(tmp_path / "api.yaml"), ManifestProvider)
    assert isinstance(service.provider_for(tmp_path / "api.YML"), ManifestProvider)
    assert isinstance(service.provider_for(tmp_path / "api.py"), PythonModuleProvider)
    assert isinstance(service.provider_for(tmp_path / "pkg"), PythonModuleProvider)
