import json
from pathlib import Path

import yaml
from click.testing import CliRunner

from openapi_assembler.cli import main

FIXTURES = Path(__file__).parent / "fixtures"


class TestCliBuild:
    def test_build_yaml(self, tmp_path):
        output_file = tmp_path / "out" / "openapi.yaml"
        runner = CliRunner()
        result = runner.invoke(main, [
            "build", str(FIXTURES / "petstore.yaml"),
            "-o", str(output_file),
            "--config", str(tmp_path / "none.yml"),
        ])

        assert result.exit_code == 0, result.output
        data = yaml.safe_load(output_file.read_text(encoding="utf-8"))
        assert list(data["paths"]) == ["/pets", "/pets/{id}"]
        assert list(data["components"]["schemas"]) == ["Pet", "PetStatus", "NewPet"]
        assert data["servers"] == [{"url": "https://petstore.example.com/v1"}]
        assert data["components"]["securitySchemes"]["api_jwt_token"]["scheme"] == "bearer"

    def test_build_json_from_suffix(self, tmp_path):
        output_file = tmp_path / "openapi.json"
        runner = CliRunner()
        result = runner.invoke(main, [
            "build", str(FIXTURES / "petstore.yaml"),
            "-o", str(output_file),
            "--config", str(tmp_path / "none.yml"),
        ])

        assert result.exit_code == 0, result.output
        data = json.loads(output_file.read_text(encoding="utf-8"))
        get_pet = data["paths"]["/pets/{id}"]["get"]
        assert get_pet["responses"]["200"]["content"]["application/json"]["schema"] == {
            "$ref": "#/components/schemas/Pet",
        }

    def test_build_with_dangling_reference_fails(self, tmp_path):
        output_file = tmp_path / "openapi.yaml"
        runner = CliRunner()
        result = runner.invoke(main, [
            "build", str(FIXTURES / "dangling.yaml"),
            "-o", str(output_file),
            "--config", str(tmp_path / "none.yml"),
        ])

        assert result.exit_code == 1
        assert "DanglingReference" in result.output
        assert not output_file.exists()

    def test_strict_build_fails_on_conflicts(self, tmp_path):
        output_file = tmp_path / "openapi.yaml"
        runner = CliRunner()
        args = ["build", str(FIXTURES / "conflicts.yaml"), "-o", str(output_file), "--config", str(tmp_path / "none.yml")]

        lenient = runner.invoke(main, args)
        assert lenient.exit_code == 0, lenient.output
        assert output_file.exists()

        strict = runner.invoke(main, args + ["--strict"])
        assert strict.exit_code == 1


class TestCliCheck:
    def test_clean_manifest(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["check", str(FIXTURES / "petstore.yaml"), "--config", str(tmp_path / "none.yml")])
        assert result.exit_code == 0
        assert "No problems found." in result.output

    def test_reports_diagnostics(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["check", str(FIXTURES / "conflicts.yaml"), "--config", str(tmp_path / "none.yml")])
        assert result.exit_code == 1
        assert "3 diagnostic(s):" in result.output
        assert "UnboundPathParameter" in result.output
        assert "UnusedDeclaredParameter" in result.output
        assert "DuplicateRoute" in result.output
