import pytest


@pytest.mark.parametrize(
    "symbol_name",
    [
        "Address",
        "Geocode",
        "WikiCityInfo",
        "RegionIndex",
        "IdentityDeduplicator",
        "EventStore",
        "IssueLog",
        "SourceSheet",
        "build_events_db",
    ],
)
def test_import_symbol(symbol_name):
    """Test that each key symbol can be imported from geo_events."""
    module = __import__("geo_events", fromlist=[symbol_name])
    symbol = getattr(module, symbol_name, None)
    assert symbol is not None, f"{symbol_name} could not be imported"


def test_import_enrichment():
    """Test the enrichment subpackage exposes the pipeline."""
    from geo_events.enrichment import EnrichmentPipeline, RunSummary
    assert EnrichmentPipeline is not None
    assert RunSummary is not None


def test_import_failure():
    """Test that importing a non-existent symbol raises ImportError or AttributeError."""
    with pytest.raises((ImportError, AttributeError)):
        from geo_events import NotARealClass
