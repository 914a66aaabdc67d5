"""Tests for clawcraft.config module."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from clawcraft.config import EncounterSettings, load_settings


class TestEncounterSettings:
    """Tests for setting validation."""

    def test_defaults(self):
        """Test the defaults describe the live world."""
        settings = EncounterSettings()
        assert settings.engagement_chance == 0.4
        assert settings.cooldown_seconds == 300.0
        assert settings.awkward_silence_seconds == 10.0
        assert settings.max_conversation_seconds == 60.0
        assert settings.max_participants == 4
        assert settings.join_requires_cooldown is False

    def test_frozen(self):
        """Test settings cannot be changed after construction."""
        settings = EncounterSettings()
        with pytest.raises(ValidationError):
            settings.cooldown_seconds = 1.0

    def test_unknown_field_rejected(self):
        """Test typos in field names fail loudly."""
        with pytest.raises(ValidationError):
            EncounterSettings(cooldown_secs=10)

    @pytest.mark.parametrize("field,value", [
        ("engagement_chance", 1.5),
        ("join_chance", -0.1),
        ("proximity_threshold", 0),
        ("max_participants", 1),
    ])
    def test_out_of_range(self, field, value):
        """Test range constraints."""
        with pytest.raises(ValidationError):
            EncounterSettings(**{field: value})

    def test_bubble_range(self):
        """Test min bubble time above max is rejected."""
        with pytest.raises(ValidationError):
            EncounterSettings(bubble_min_seconds=9.0, bubble_max_seconds=8.0)

    def test_generation_must_beat_silence(self):
        """Test the generation timeout must be shorter than the silence timer."""
        with pytest.raises(ValidationError):
            EncounterSettings(generation_timeout_seconds=10.0, awkward_silence_seconds=10.0)

    def test_memory_and_generation_must_beat_silence(self):
        """Test the memory and generation timeouts together must fit in the silence timer."""
        with pytest.raises(ValidationError):
            EncounterSettings(
                memory_timeout_seconds=0.1,
                generation_timeout_seconds=0.15,
                awkward_silence_seconds=0.2,
                max_conversation_seconds=1.0,
            )
        settings = EncounterSettings(
            memory_timeout_seconds=0.04,
            generation_timeout_seconds=0.15,
            awkward_silence_seconds=0.2,
            max_conversation_seconds=1.0,
        )
        assert settings.memory_timeout_seconds == 0.04

    def test_silence_must_beat_ceiling(self):
        """Test the silence timer must be shorter than the global ceiling."""
        with pytest.raises(ValidationError):
            EncounterSettings(awkward_silence_seconds=30.0, max_conversation_seconds=30.0)

    def test_models_required(self):
        """Test an empty model list is rejected."""
        with pytest.raises(ValidationError):
            EncounterSettings(candidate_models=())


class TestLoadSettings:
    """Tests for YAML and environment loading."""

    def test_no_sources(self):
        """Test defaults when there is no file or environment."""
        assert load_settings(environ={}) == EncounterSettings()

    def test_yaml_file(self, tmp_path: Path):
        """Test values are read from YAML."""
        path = tmp_path / "encounters.yaml"
        path.write_text("engagement_chance: 1.0\ncooldown_seconds: 30\n", encoding="utf-8")

        settings = load_settings(path, environ={})

        assert settings.engagement_chance == 1.0
        assert settings.cooldown_seconds == 30.0

    def test_empty_yaml(self, tmp_path: Path):
        """Test an empty file means defaults."""
        path = tmp_path / "encounters.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(path, environ={}) == EncounterSettings()

    def test_yaml_must_be_mapping(self, tmp_path: Path):
        """Test a list at the top level is rejected."""
        path = tmp_path / "encounters.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_settings(path, environ={})

    def test_missing_file(self, tmp_path: Path):
        """Test a named but missing file is an error."""
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "nope.yaml", environ={})

    def test_env_overrides_yaml(self, tmp_path: Path):
        """Test environment variables win over the file."""
        path = tmp_path / "encounters.yaml"
        path.write_text("engagement_chance: 0.5\n", encoding="utf-8")

        settings = load_settings(path, environ={
            "CLAWCRAFT_ENGAGEMENT_CHANCE": "0.9",
            "CLAWCRAFT_JOIN_REQUIRES_COOLDOWN": "true",
            "UNRELATED": "x",
        })

        assert settings.engagement_chance == 0.9
        assert settings.join_requires_cooldown is True

    def test_env_candidate_models(self):
        """Test the model list is comma separated."""
        settings = load_settings(environ={"CLAWCRAFT_CANDIDATE_MODELS": "model-a, model-b,"})
        assert settings.candidate_models == ("model-a", "model-b")

    def test_env_invalid_value(self):
        """Test a bad environment value fails validation."""
        with pytest.raises(ValidationError):
            load_settings(environ={"CLAWCRAFT_ENGAGEMENT_CHANCE": "lots"})
