import pytest

from imageproxy.models import (
    OptimizationEvent,
    RemoteURL,
    StoreKey,
    TransformParams,
    classify_source,
    derivative_cache_key,
    original_cache_key,
    savings_percent,
)


@pytest.mark.parametrize("source", ["http://x/a.jpg", "https://x/a.jpg"])
def test_classify_remote_url(source):
    assert classify_source(source) == RemoteURL(source)


@pytest.mark.parametrize("source", ["photos/cat.jpg", "ftp://x/a.jpg", "HTTPS://x/a.jpg", "httpx"])
def test_classify_store_key(source):
    assert classify_source(source) == StoreKey(source)


def test_source_kinds():
    assert classify_source("https://x").kind == "url"
    assert classify_source("key").kind == "r2"


def test_transform_params_defaults():
    params = TransformParams.from_query(None, None)
    assert params.width is None
    assert params.quality == 75
    assert params.quality_in_range


def test_transform_params_parses_width_leniently():
    assert TransformParams.from_query("300px", "80").width == 300
    assert TransformParams.from_query("abc", "80").width is None
    assert TransformParams.from_query("0", "80").width is None
    assert TransformParams.from_query("-20", "80").width is None


def test_transform_params_out_of_range_quality_is_kept_but_flagged():
    params = TransformParams.from_query("100", "150")
    assert params.width == 100
    assert params.quality == 150
    assert not params.quality_in_range
    assert not TransformParams.from_query(None, "high").quality_in_range


def test_cache_keys_are_namespaced_and_exact():
    assert derivative_cache_key("a.jpg", None, "75") == "img:a.jpg:w=null:q=75"
    assert derivative_cache_key("a.jpg", "300", "80") == "img:a.jpg:w=300:q=80"
    assert derivative_cache_key("A.jpg", "300", "80") != derivative_cache_key("a.jpg", "300", "80")
    assert original_cache_key("a.jpg") == "original:a.jpg"


def test_savings_percent():
    assert savings_percent(200, 100) == 50.0
    assert savings_percent(100, 150) == -50.0
    assert savings_percent(0, 10) == 0.0
    assert savings_percent(None, 10) is None


def test_event_compression_ratio():
    event = OptimizationEvent(event_type="cache_miss", original_url="a", original_size=200, optimized_size=50)
    assert event.compression_ratio == 75
    assert event.to_data()["compressionRatio"] == 75
    assert OptimizationEvent(event_type="cache_hit", original_url="a").compression_ratio is None
