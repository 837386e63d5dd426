"""Tests for the ``apizza menu`` command."""

from __future__ import annotations

import json

from apizza.exit_codes import EXIT_CONNECTION_ERROR, EXIT_INVALID_USAGE, EXIT_NOT_FOUND


def _menu(cli_runner, cli_app, *args: str):
    return cli_runner.invoke(cli_app, ["menu", *args])


class TestMenu:
    def test_show_categories(self, fake_service, cli_runner, cli_app) -> None:
        result = _menu(cli_runner, cli_app, "--show-categories")
        assert result.exit_code == 0, result.output
        assert result.stdout.splitlines() == ["pizza", "drinks"]
        assert fake_service.paths() == ["/power/store-locator", "/power/store/4336/menu"]

    def test_fresh_menu_needs_no_network(self, fake_service, cli_runner, cli_app) -> None:
        _menu(cli_runner, cli_app, "--show-categories")
        fake_service.requests.clear()
        result = _menu(cli_runner, cli_app, "--show-categories")
        assert result.exit_code == 0
        assert fake_service.requests == []

    def test_refresh_refetches(self, fake_service, cli_runner, cli_app) -> None:
        _menu(cli_runner, cli_app, "--show-categories")
        fake_service.requests.clear()
        result = _menu(cli_runner, cli_app, "--refresh", "--show-categories")
        assert result.exit_code == 0
        assert "/power/store/4336/menu" in fake_service.paths()

    def test_category(self, fake_service, cli_runner, cli_app) -> None:
        result = _menu(cli_runner, cli_app, "--category", "DRINKS")
        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[0] == "Drinks"
        assert "[F_COKE] Coke" in lines
        assert any(line.strip() == "2LCOKE" for line in lines)

    def test_nested_categories(self, fake_service, cli_runner, cli_app) -> None:
        result = _menu(cli_runner, cli_app, "--category", "pizza")
        lines = result.stdout.splitlines()
        assert lines[0] == "Pizza"
        assert lines[1] == "  Specialty Pizzas"
        assert "  [S_DELUXE] Deluxe" in lines

    def test_whole_menu_skips_empty_categories(self, fake_service, cli_runner, cli_app) -> None:
        result = _menu(cli_runner, cli_app)
        assert result.exit_code == 0
        assert "Pizza" in result.stdout
        assert "Drinks" in result.stdout
        assert "Empty" not in result.stdout

    def test_unknown_category(self, fake_service, cli_runner, cli_app) -> None:
        result = _menu(cli_runner, cli_app, "--category", "desserts")
        assert result.exit_code == EXIT_NOT_FOUND

    def test_service_down_without_cache(self, fake_service, cli_runner, cli_app) -> None:
        fake_service.down = True
        result = _menu(cli_runner, cli_app, "--show-categories")
        assert result.exit_code == EXIT_CONNECTION_ERROR

    def test_service_down_serves_cached_menu(self, fake_service, cli_runner, cli_app) -> None:
        _menu(cli_runner, cli_app, "--show-categories")
        fake_service.down = True
        result = _menu(cli_runner, cli_app, "--refresh", "--show-categories")
        assert result.exit_code == 0
        assert "pizza" in result.stdout.splitlines()

    def test_address_change_looks_up_store_again(self, fake_service, cli_runner, cli_app) -> None:
        fake_service.stores["90001"] = "7001"
        _menu(cli_runner, cli_app, "--show-categories")
        cli_runner.invoke(cli_app, ["config", "set", "address.zipcode=90001"])
        fake_service.requests.clear()

        result = _menu(cli_runner, cli_app, "--show-categories")
        assert result.exit_code == 0
        assert fake_service.paths() == ["/power/store-locator", "/power/store/7001/menu"]

    def test_service_change_looks_up_store_again(self, fake_service, cli_runner, cli_app) -> None:
        _menu(cli_runner, cli_app, "--show-categories")
        cli_runner.invoke(cli_app, ["config", "set", "service=Carryout"])
        fake_service.requests.clear()

        _menu(cli_runner, cli_app, "--show-categories")
        locator = [r for r in fake_service.requests if r.url.path == "/power/store-locator"]
        assert len(locator) == 1
        assert locator[0].url.params["type"] == "Carryout"

    def test_profile_without_address(self, isolated_config, cli_runner, cli_app) -> None:
        result = _menu(cli_runner, cli_app, "--show-categories")
        assert result.exit_code == EXIT_INVALID_USAGE


class TestMenuSections:
    def test_item_lookup(self, fake_service, cli_runner, cli_app) -> None:
        result = _menu(cli_runner, cli_app, "--item", "S_DELUXE")
        assert result.exit_code == 0, result.output
        lines = result.stdout.splitlines()
        assert lines[0] == "Deluxe [S_DELUXE]"
        assert lines[1] == "    DefaultToppings: X=1,C=1,P=1"
        assert "    ProductType: Pizza" in lines
        assert not any(line.strip().startswith("Tags:") for line in lines)

    def test_item_finds_variants_and_preconfigured(self, fake_service, cli_runner, cli_app) -> None:
        result = _menu(cli_runner, cli_app, "-i", "2LCOKE")
        assert result.stdout.splitlines()[0] == "2-Liter Coke [2LCOKE]"
        result = _menu(cli_runner, cli_app, "-i", "14SCEXTRAV")
        assert result.stdout.splitlines()[0] == "Large ExtravaganZZa [14SCEXTRAV]"

    def test_item_json(self, fake_service, cli_runner, cli_app) -> None:
        result = cli_runner.invoke(cli_app, ["--json", "menu", "--item", "F_COKE"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["Variants"] == ["2LCOKE"]

    def test_unknown_item(self, fake_service, cli_runner, cli_app) -> None:
        result = _menu(cli_runner, cli_app, "--item", "NOPE")
        assert result.exit_code == EXIT_NOT_FOUND

    def test_toppings(self, fake_service, cli_runner, cli_app) -> None:
        result = _menu(cli_runner, cli_app, "--toppings")
        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[0] == "  Pizza"
        assert "    C   Cheese" in lines
        assert "  Sandwich" in lines
        assert "    Si  Spinach" in lines

    def test_preconfigured(self, fake_service, cli_runner, cli_app) -> None:
        result = _menu(cli_runner, cli_app, "--preconfigured")
        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines == ["Popular Items", "[14SCEXTRAV] Large ExtravaganZZa"]

    def test_all_lists_both_groups(self, fake_service, cli_runner, cli_app) -> None:
        result = _menu(cli_runner, cli_app, "--all", "--show-categories")
        assert result.stdout.splitlines() == ["pizza", "drinks", "popular items"]

    def test_category_within_preconfigured(self, fake_service, cli_runner, cli_app) -> None:
        assert _menu(cli_runner, cli_app, "-p", "-c", "popularitems").exit_code == 0
        assert _menu(cli_runner, cli_app, "-c", "popularitems").exit_code == EXIT_NOT_FOUND
