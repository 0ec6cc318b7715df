"""Tests for the Flask CLI commands."""

from gsheets_gateway.api_keys import is_valid_api_key, list_api_keys


class TestCreateApiKey:
    def test_creates_and_stores_key(self, app, engine) -> None:
        result = app.test_cli_runner().invoke(args=["create-api-key"])
        assert result.exit_code == 0
        key = result.output.strip()
        assert len(key) == 88
        assert is_valid_api_key(engine, key) is True

    def test_custom_size(self, app) -> None:
        result = app.test_cli_runner().invoke(args=["create-api-key", "--size", "32"])
        assert len(result.output.strip()) == 44

    def test_created_key_opens_the_gate(self, app, client) -> None:
        key = app.test_cli_runner().invoke(args=["create-api-key"]).output.strip()
        response = client.post("/read", json={}, headers={"x-api-key": key})
        assert response.status_code == 200


class TestRevokeAndList:
    def test_revoke(self, app, engine) -> None:
        runner = app.test_cli_runner()
        key = runner.invoke(args=["create-api-key"]).output.strip()
        result = runner.invoke(args=["revoke-api-key", key])
        assert result.exit_code == 0
        assert is_valid_api_key(engine, key) is False

    def test_revoke_unknown(self, app) -> None:
        result = app.test_cli_runner().invoke(args=["revoke-api-key", "nope"])
        assert result.exit_code != 0

    def test_list_masks_keys(self, app, engine) -> None:
        runner = app.test_cli_runner()
        key = runner.invoke(args=["create-api-key"]).output.strip()
        result = runner.invoke(args=["list-api-keys"])
        assert key not in result.output
        assert key[:6] in result.output
        assert "active" in result.output
        assert len(list_api_keys(engine)) == 1


class TestGeneratePassword:
    def test_generates(self, app) -> None:
        result = app.test_cli_runner().invoke(args=[
            "generate-password", "--length", "12", "--digits", "3", "--symbols", "1", "--no-upper-case",
        ])
        assert result.exit_code == 0
        password = result.output.strip("\n")
        assert len(password) == 12

    def test_invalid_length(self, app) -> None:
        result = app.test_cli_runner().invoke(args=[
            "generate-password", "--length", "5", "--digits", "3", "--symbols", "3",
        ])
        assert result.exit_code != 0
        assert "Number of digits and symbols" in result.output
