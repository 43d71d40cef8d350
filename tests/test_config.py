from pathlib import Path

import pytest

from hmmtag.config import Config, load_config


def test_load_config_reads_all_sections(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
training:
  epochs: 5
  learning_rate: 0.5
  learning_rate_schedule: sqrt
  average: false
  shuffle: false
  seed: 42
model:
  default_state: OUT
  store: dense
paths:
  model: out/model.json
""".strip(),
        encoding="utf-8",
    )

    cfg = load_config(str(config_path))

    assert cfg.epochs == 5
    assert cfg.learning_rate == 0.5
    assert cfg.learning_rate_schedule == "sqrt"
    assert cfg.average is False
    assert cfg.shuffle is False
    assert cfg.seed == 42
    assert cfg.default_state == "OUT"
    assert cfg.store == "dense"
    assert cfg.paths["model"] == "out/model.json"


def test_load_config_falls_back_to_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("training:\n  epochs: 3\n", encoding="utf-8")

    cfg = load_config(str(config_path))

    assert cfg.epochs == 3
    assert cfg.learning_rate == Config().learning_rate
    assert cfg.average is True
    assert cfg.seed is None
    assert cfg.store == "sparse"


def test_load_config_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))


def test_load_config_rejects_non_dict_yaml(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("- not a mapping", encoding="utf-8")

    with pytest.raises(TypeError):
        load_config(str(config_path))


def test_load_config_rejects_invalid_yaml(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("training: [unclosed", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(str(config_path))


@pytest.mark.parametrize("section", ["training", "model", "paths"])
def test_load_config_rejects_non_dict_sections(tmp_path: Path, section: str) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(f"{section}: [1, 2]\n", encoding="utf-8")

    with pytest.raises(TypeError):
        load_config(str(config_path))


@pytest.mark.parametrize("key", ["average", "shuffle"])
def test_load_config_rejects_quoted_booleans(tmp_path: Path, key: str) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(f'training:\n  {key}: "false"\n', encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(str(config_path))


@pytest.mark.parametrize(
    "overrides",
    [{"epochs": 0}, {"learning_rate": 0.0}, {"learning_rate_schedule": "cosine"}, {"store": "hashed"}],
)
def test_config_validates_values(overrides) -> None:
    with pytest.raises(ValueError):
        Config(**overrides)


def test_repository_config_loads() -> None:
    cfg = load_config(str(Path(__file__).resolve().parents[1] / "config.yaml"))
    assert cfg.default_state == "O"
