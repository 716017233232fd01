from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "INTERVALEAR_"

# FluidR3Mono_GM is a compressed SF2 (SF3) that fluidsynth reads natively
DEFAULT_SF2_URL = "https://github.com/musescore/MuseScore/raw/2.3.2/share/sound/FluidR3Mono_GM.sf3"


class CompressorSettings(BaseModel):
	threshold: float = Field(default=-24.0, le=0.0)
	knee: float = Field(default=30.0, ge=0.0)
	ratio: float = Field(default=4.0, ge=1.0)
	attack: float = Field(default=0.003, gt=0.0)
	release: float = Field(default=0.25, gt=0.0)


class EngineSettings(BaseModel):
	sample_rate: int = Field(default=44100, ge=8000)
	block_size: int = Field(default=512, ge=32)
	master_gain: float = Field(default=1.5, gt=0.0)
	note_gain: float = Field(default=1.4, gt=0.0)
	chord_gain: float = Field(default=1.2, gt=0.0)
	note_duration: float = Field(default=0.7, gt=0.0)
	note_delay: float = Field(default=0.1, ge=0.0)
	compressor: CompressorSettings = Field(default_factory=CompressorSettings)
	soundfont_path: Optional[Path] = None
	soundfont_url: str = DEFAULT_SF2_URL
	fluidsynth_gain: float = Field(default=1.2, gt=0.0)
	data_dir: Path = Field(default_factory=lambda: Path.home() / ".intervalear")
	log_level: str = "INFO"

	@property
	def sf2_dir(self) -> Path:
		return self.data_dir / "sf2"


_ENV_FIELDS = {
	"SF2_PATH": "soundfont_path",
	"SF2_URL": "soundfont_url",
	"MASTER_GAIN": "master_gain",
	"SAMPLE_RATE": "sample_rate",
	"DATA_DIR": "data_dir",
	"LOG_LEVEL": "log_level",
}


@lru_cache(maxsize=1)
def load_settings() -> EngineSettings:
	"""Build settings from INTERVALEAR_* environment variables.

	Raises:
		pydantic.ValidationError: if a variable does not parse.
	"""
	env: Dict[str, str] = {}
	for suffix, field in _ENV_FIELDS.items():
		value = os.getenv(ENV_PREFIX + suffix)
		if value:
			env[field] = value
	return EngineSettings.model_validate(env)


def configure_logging(level: Optional[str] = None) -> None:
	log_level = (level or load_settings().log_level).upper()
	handler = logging.StreamHandler()
	handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
	logger = logging.getLogger("intervalear")
	logger.handlers.clear()
	logger.addHandler(handler)
	logger.setLevel(getattr(logging, log_level, logging.INFO))
