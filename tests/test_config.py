from pathlib import Path

from src.patrol.config import Settings


def test_defaults_match_map_constants():
    config = Settings()

    assert (config.default_lat, config.default_lng) == (25.0330, 121.5654)
    assert (config.fallback_region, config.fallback_subregion) == ("臺北市", "信義區")
    assert config.proximity_presets_km == (0.1, 0.2, 0.5, 1.0, 3.0, 5.0, 10.0, 20.0)
    assert config.default_radius_km == 0.1
    assert config.replay_track_file is None


def test_presets_and_origins_accept_comma_separated_values():
    config = Settings(proximity_presets_km="0.5, 1", frontend_allowed_origins="http://a.test,http://b.test")

    assert config.proximity_presets_km == (0.5, 1.0)
    assert config.frontend_allowed_origins == ("http://a.test", "http://b.test")


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("PATROL_PROXIMITY_PRESETS_KM", "[0.5, 2]")
    monkeypatch.setenv("PATROL_LOCATION_PROVIDER", "replay")
    monkeypatch.setenv("PATROL_REPLAY_TRACK_FILE", str(tmp_path / "track.json"))

    config = Settings()

    assert config.proximity_presets_km == (0.5, 2.0)
    assert config.location_provider == "replay"
    assert config.replay_track_file == (tmp_path / "track.json").resolve()


def test_paths_are_resolved():
    config = Settings(data_file="data/stores.json")

    assert config.data_file == Path("data/stores.json").resolve()


def test_empty_path_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("PATROL_DIST_DIR", "")

    config = Settings(data_file="", replay_track_file="")

    assert config.dist_dir == Path("dist").resolve()
    assert config.data_file == Path("data/taiwan_stores_data.json").resolve()
    assert config.replay_track_file is None
