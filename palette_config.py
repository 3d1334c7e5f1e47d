"""Tunable parameters for palette extraction, loadable from YAML."""

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

QUANTIZERS = ('buckets', 'kmeans')


@dataclass(frozen=True)
class PaletteConfig:
    """Extraction parameters. Defaults suit full-page website screenshots."""
    area_threshold: float = 0.01  # Halved when filtering
    similarity_threshold: float = 20.0  # HSL Euclidean distance
    min_colors: int = 5  # Exact length of the final palette
    sample_size: int = 200  # Side of the downsampled square
    quantizer: str = 'buckets'
    kmeans_clusters: int = 16
    seed: Optional[int] = None  # Seeds k-means and the random fallback color

    def __post_init__(self):
        # bool is an int subclass; YAML 'yes'/'true' must not pass as a count
        for name in ('min_colors', 'sample_size', 'kmeans_clusters'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        for name in ('area_threshold', 'similarity_threshold'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number, got {value!r}")
        if self.seed is not None and (isinstance(self.seed, bool) or not isinstance(self.seed, int)):
            raise ValueError(f"seed must be an integer, got {self.seed!r}")
        if self.area_threshold < 0:
            raise ValueError(f"area_threshold must be >= 0, got {self.area_threshold}")
        if self.similarity_threshold < 0:
            raise ValueError(f"similarity_threshold must be >= 0, got {self.similarity_threshold}")
        if self.min_colors < 0:
            raise ValueError(f"min_colors must be >= 0, got {self.min_colors}")
        if self.sample_size < 1:
            raise ValueError(f"sample_size must be >= 1, got {self.sample_size}")
        if self.kmeans_clusters < 1:
            raise ValueError(f"kmeans_clusters must be >= 1, got {self.kmeans_clusters}")
        if self.quantizer not in QUANTIZERS:
            raise ValueError(f"quantizer must be one of {QUANTIZERS}, got {self.quantizer!r}")

    @classmethod
    def from_dict(cls, data: dict) -> 'PaletteConfig':
        """Build a config from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        return cls(**data)

    def override(self, **values) -> 'PaletteConfig':
        """Return a copy with the non-None values applied."""
        return replace(self, **{k: v for k, v in values.items() if v is not None})


def load_config(path) -> PaletteConfig:
    """
    Load a PaletteConfig from a YAML file.

    An empty file yields the defaults.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the YAML is malformed or holds invalid values
    """
    path = Path(path)
    try:
        with open(path) as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as e:
        raise ValueError(f"Could not parse config {path}: {e}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Config {path} must be a mapping, got {type(data).__name__}")

    logger.debug("Loaded config from %s: %s", path, data)
    return PaletteConfig.from_dict(data)


def add_config_arguments(parser) -> None:
    """Register the config file and per-parameter override flags on an argparse parser."""
    parser.add_argument('--config', '-c', help='YAML file with extraction parameters')
    parser.add_argument('--area-threshold', type=float, help='Minimum area share (halved when filtering)')
    parser.add_argument('--similarity-threshold', type=float, help='HSL distance below which colors count as duplicates')
    parser.add_argument('--min-colors', type=int, help='Number of colors in the final palette')
    parser.add_argument('--sample-size', type=int, help='Side of the downsampled square')
    parser.add_argument('--quantizer', choices=QUANTIZERS, help='Pixel clustering method')
    parser.add_argument('--seed', type=int, help='Seed for k-means and random fallback colors')


def config_from_args(args) -> PaletteConfig:
    """Resolve a config from parsed CLI arguments: file first, then flag overrides."""
    config = load_config(args.config) if args.config else PaletteConfig()
    return config.override(
        area_threshold=args.area_threshold,
        similarity_threshold=args.similarity_threshold,
        min_colors=args.min_colors,
        sample_size=args.sample_size,
        quantizer=args.quantizer,
        seed=args.seed,
    )
