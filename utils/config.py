"""
This file contains the `Config` class which deals with the user's
settings for the mempool.dat tools (log file, LMDB export directory, ...)
"""

import copy
import json

from pathlib import Path


DEFAULT_CONFIG = {
    "app": {
        "name": {"value": "mempool-dat"},
    },
    "path": {
        "log": {"value": "logs/mempool_dat.log"},
        "lmdb": {"value": "lmdb"},
    },
    "logging": {
        "level": {"value": "INFO"},
    },
    "decoder": {
        "read_deltas": {"value": False},
    },
}


class Config:
    def __init__(self, config_json: Path | None = None):
        self.BASE_DIR = Path(__file__).resolve().parent.parent
        self.CONFIG_JSON = config_json or self.BASE_DIR / "config.json"

        self.data: dict = copy.deepcopy(DEFAULT_CONFIG)
        if self.CONFIG_JSON.exists():
            with open(self.CONFIG_JSON, "r", encoding="utf-8") as cfg:
                for category, variables in json.load(cfg).items():
                    self.data.setdefault(category, {}).update(variables)

    def get(self, category: str, varname: str):
        value = self.data.get(category, {}).get(varname, {}).get("value", None)
        if value is not None:
            if category == "path":
                return self.BASE_DIR / value
            else:
                return value
        else:
            return None

    def set(self, category: str, varname: str, value):
        if self.data.get(category, {}).get(varname) is not None:
            self.data[category][varname]["value"] = value
            self._save()

    def _save(self):
        with open(self.CONFIG_JSON, "w", encoding="utf-8") as cfg:
            json.dump(self.data, cfg, indent=4)


"""
Use this variable anywhere else to prevent reloading config.json every time
"""
APP_CONFIG = Config()
