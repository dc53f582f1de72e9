"""Tests for neighborhood dataset loading."""

import json
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest
from conftest import collection, feature, square

from nhood_api.config import settings
from nhood_api.errors import DataUnavailableError
from nhood_api.spatial import dataset
from nhood_api.spatial.loader import LoadOnce, parse_feature_collection, read_neighborhoods
from nhood_api.spatial.types import Point


class TestParseFeatureCollection:
    """Tests for parse_feature_collection."""

    def test_parses_nta_2020_properties(self, nyc_geojson):
        neighborhoods = parse_feature_collection(nyc_geojson)

        assert [n.code for n in neighborhoods] == ["MN0301", "MN0302", "MN0303", "QN0101"]
        first = neighborhoods[0]
        assert first.name == "East Village"
        assert first.borough == "Manhattan"
        assert first.geometry["type"] == "Polygon"
        assert first.shape.geom_type == "Polygon"

    def test_older_property_names(self):
        data = collection(
            {
                "type": "Feature",
                "properties": {"NTACode": "MN22", "NTAName": "East Village", "BoroName": "Manhattan"},
                "geometry": square(0, 0, 1, 1),
            }
        )

        [n] = parse_feature_collection(data)

        assert (n.code, n.name, n.borough) == ("MN22", "East Village", "Manhattan")

    def test_custom_keys(self):
        data = collection(
            {
                "type": "Feature",
                "properties": {"hood_id": "H1", "label": "Harbor", "region": "South"},
                "geometry": square(0, 0, 1, 1),
            }
        )

        [n] = parse_feature_collection(
            data, code_keys=["hood_id"], name_keys=["label"], borough_keys=["region"]
        )

        assert (n.code, n.name, n.borough) == ("H1", "Harbor", "South")

    def test_feature_id_used_when_no_code_property(self):
        data = collection(
            {
                "type": "Feature",
                "id": 17,
                "properties": {"name": "Seventeen"},
                "geometry": square(0, 0, 1, 1),
            }
        )

        [n] = parse_feature_collection(data)

        assert n.code == "17"
        assert n.borough is None

    def test_numeric_code_is_stringified(self):
        data = collection(
            {"type": "Feature", "properties": {"id": 5, "name": "Five"}, "geometry": square(0, 0, 1, 1)}
        )
        assert parse_feature_collection(data)[0].code == "5"

    def test_multipolygon_accepted(self):
        geometry = {
            "type": "MultiPolygon",
            "coordinates": [
                [[[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]],
                [[[2, 2], [3, 2], [3, 3], [2, 3], [2, 2]]],
            ],
        }
        [n] = parse_feature_collection(collection(feature("M1", "Islands", geometry)))
        assert n.shape.geom_type == "MultiPolygon"

    def test_invalid_geometry_is_kept_with_warning(self, caplog):
        bowtie = {
            "type": "Polygon",
            "coordinates": [[[0, 0], [1, 1], [1, 0], [0, 1], [0, 0]]],
        }
        [n] = parse_feature_collection(collection(feature("BT", "Bowtie", bowtie)))

        assert n.code == "BT"
        assert "invalid geometry" in caplog.text

    @pytest.mark.parametrize(
        "data",
        [
            None,
            [],
            {"type": "Feature"},
            {"type": "FeatureCollection"},
            {"type": "FeatureCollection", "features": {}},
        ],
    )
    def test_not_a_feature_collection(self, data):
        with pytest.raises(DataUnavailableError):
            parse_feature_collection(data)

    def test_missing_name_fails_whole_load(self):
        data = collection(
            feature("A", "Alpha", square(0, 0, 1, 1)),
            {"type": "Feature", "properties": {"nta2020": "B"}, "geometry": square(1, 0, 2, 1)},
        )
        with pytest.raises(DataUnavailableError, match="Feature 1 \\(B\\) has no name"):
            parse_feature_collection(data)

    def test_missing_code_fails(self):
        data = collection(
            {"type": "Feature", "properties": {"ntaname": "Nameless"}, "geometry": square(0, 0, 1, 1)}
        )
        with pytest.raises(DataUnavailableError, match="no code"):
            parse_feature_collection(data)

    @pytest.mark.parametrize(
        "geometry",
        [
            None,
            {"type": "Point", "coordinates": [0, 0]},
            {"type": "Polygon", "coordinates": [[[0, 0], [1, 1]]]},
            {"type": "Polygon", "coordinates": []},
        ],
    )
    def test_unusable_geometry_fails(self, geometry):
        data = collection(feature("A", "Alpha", geometry))
        with pytest.raises(DataUnavailableError, match="unusable geometry"):
            parse_feature_collection(data)

    def test_non_object_feature_fails(self):
        with pytest.raises(DataUnavailableError):
            parse_feature_collection(collection("not a feature"))


class TestReadNeighborhoods:
    """Tests for read_neighborhoods."""

    def test_reads_file(self, neighborhoods_file):
        neighborhoods = read_neighborhoods(neighborhoods_file)
        assert len(neighborhoods) == 4

    def test_missing_file(self, tmp_path):
        with pytest.raises(DataUnavailableError, match="not found"):
            read_neighborhoods(tmp_path / "missing.geojson")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.geojson"
        path.write_text("{not json")
        with pytest.raises(DataUnavailableError, match="not valid JSON"):
            read_neighborhoods(path)

    def test_empty_collection(self, tmp_path):
        path = tmp_path / "empty.geojson"
        path.write_text(json.dumps(collection()))
        with pytest.raises(DataUnavailableError, match="no features"):
            read_neighborhoods(path)

    def test_directory_is_unreadable(self, tmp_path):
        with pytest.raises(DataUnavailableError):
            read_neighborhoods(tmp_path)


class TestLoadOnce:
    """Tests for the load-once resource."""

    def test_factory_runs_once(self):
        calls = []
        resource = LoadOnce(lambda: calls.append(1) or len(calls), "test")

        assert resource.loaded is False
        assert resource.get() == 1
        assert resource.get() == 1
        assert resource.loaded is True
        assert calls == [1]

    def test_concurrent_first_access_loads_once(self):
        calls = []
        lock = threading.Lock()
        barrier = threading.Barrier(8)

        def factory():
            with lock:
                calls.append(1)
            time.sleep(0.05)
            return object()

        resource = LoadOnce(factory, "test")

        def worker():
            barrier.wait()
            return resource.get()

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: worker(), range(8)))

        assert len(calls) == 1
        assert all(r is results[0] for r in results)

    def test_failure_is_not_cached(self):
        attempts = []

        def factory():
            attempts.append(1)
            if len(attempts) == 1:
                raise DataUnavailableError("first try fails")
            return "ok"

        resource = LoadOnce(factory, "test")

        with pytest.raises(DataUnavailableError):
            resource.get()
        assert resource.loaded is False
        assert resource.get() == "ok"
        assert len(attempts) == 2

    def test_reset(self):
        counter = iter(range(10))
        resource = LoadOnce(lambda: next(counter), "test")

        assert resource.get() == 0
        resource.reset()
        assert resource.loaded is False
        assert resource.get() == 1


class TestProcessDataset:
    """Tests for the process-wide dataset functions."""

    @pytest.fixture
    def configured(self, monkeypatch, neighborhoods_file):
        monkeypatch.setattr(settings, "neighborhoods_path", str(neighborhoods_file))
        dataset.neighborhood_dataset.reset()
        yield
        dataset.neighborhood_dataset.reset()

    def test_load_neighborhoods_is_memoized(self, configured):
        first = dataset.load_neighborhoods()
        second = dataset.load_neighborhoods()

        assert first is second
        assert len(first) == 4

    def test_module_level_queries(self, configured):
        east_village = dataset.find_containing_neighborhood(Point(-73.985, 40.725))

        assert east_village.code == "MN0301"
        assert {n.code for n in dataset.find_adjacent_neighborhoods(east_village)} == {
            "MN0302",
            "MN0303",
        }
        assert dataset.find_containing_neighborhood((-40.0, 30.0)) is None

    def test_uses_configured_radius(self, configured, monkeypatch):
        monkeypatch.setattr(settings, "adjacency_radius", 0.2)
        resolver = dataset.load_neighborhoods()

        assert resolver.default_radius == 0.2
        east_village = resolver.get("MN0301")
        assert {n.code for n in dataset.find_adjacent_neighborhoods(east_village)} == {"MN0302"}

    def test_missing_dataset_is_an_error(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "neighborhoods_path", str(tmp_path / "missing.geojson"))
        dataset.neighborhood_dataset.reset()
        try:
            with pytest.raises(DataUnavailableError):
                dataset.find_containing_neighborhood(Point(-73.985, 40.725))
            assert dataset.neighborhood_dataset.loaded is False
        finally:
            dataset.neighborhood_dataset.reset()
