"""Unit tests for the token catalog."""

import pytest

from token_forecast_bot.data.catalog import DEFAULT_TOKENS, TokenCatalog


class TestTokenCatalog:
    """Test suite for TokenCatalog lookups."""

    def test_lookup_known_symbols(self, catalog: TokenCatalog) -> None:
        """Every catalog symbol resolves to its fixed index."""
        for symbol, index in DEFAULT_TOKENS.items():
            assert catalog.lookup(symbol) == index
            # Deterministic across calls
            assert catalog.lookup(symbol) == index

    def test_known_entries(self, catalog: TokenCatalog) -> None:
        assert catalog.lookup("WBTC") == 0
        assert catalog.lookup("ETH") == 9
        assert catalog.lookup("3CRV") == 14
        assert catalog.lookup("FRXETH") == 29

    @pytest.mark.parametrize("symbol", ["FOO", "eth", "Eth", " ETH", "", "9"])
    def test_lookup_unknown_symbol(self, catalog: TokenCatalog, symbol: str) -> None:
        """Lookups are exact-match and case-sensitive."""
        assert catalog.lookup(symbol) is None
        assert symbol not in catalog

    def test_symbols_in_catalog_order(self, catalog: TokenCatalog) -> None:
        symbols = catalog.symbols()
        assert len(symbols) == 30
        assert symbols[:3] == ["WBTC", "WETH", "USDC"]
        assert symbols[-1] == "FRXETH"
        assert [catalog.lookup(s) for s in symbols] == list(range(30))

    def test_indices_unique(self, catalog: TokenCatalog) -> None:
        indices = [catalog.lookup(s) for s in catalog]
        assert len(set(indices)) == len(catalog)

    def test_catalog_is_read_only(self, catalog: TokenCatalog) -> None:
        with pytest.raises(TypeError):
            catalog._tokens["NEW"] = 30  # type: ignore[index]
        with pytest.raises(TypeError):
            DEFAULT_TOKENS["NEW"] = 30  # type: ignore[index]

    def test_symbols_copy_does_not_mutate_catalog(self, catalog: TokenCatalog) -> None:
        symbols = catalog.symbols()
        symbols.append("NEW")
        assert "NEW" not in catalog
        assert len(catalog) == 30

    def test_custom_catalog(self) -> None:
        catalog = TokenCatalog({"AAA": 0, "BBB": 1})
        assert catalog.lookup("BBB") == 1
        assert catalog.lookup("ETH") is None

    def test_rejects_duplicate_indices(self) -> None:
        with pytest.raises(ValueError, match="unique"):
            TokenCatalog({"AAA": 0, "BBB": 0})

    @pytest.mark.parametrize("index", [-1, 1.5, True, "1"])
    def test_rejects_invalid_indices(self, index) -> None:
        with pytest.raises(ValueError, match="non-negative integer"):
            TokenCatalog({"AAA": index})
