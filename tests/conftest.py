import pytest
from dvhop_simulator.config.config_handler import ConfigHandler
from dvhop_simulator.utils import logging


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Fresh default config per test, written into a scratch directory"""
    monkeypatch.chdir(tmp_path)
    ConfigHandler.reset()
    logging.configure(enabled=False)
    yield ConfigHandler()
    ConfigHandler.reset()
    logging.configure(enabled=False)
