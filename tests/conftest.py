import importlib.util
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
CONTRACT_PATH = PROJECT_ROOT / "con_shielded_account.py"
TRACKER_PATH = PROJECT_ROOT / "balance_tracker.py"
HELPER_PATH = PROJECT_ROOT / "shielded_helper.py"


def submission_path():
    import contracting

    return Path(contracting.__file__).resolve().parent / "contracts" / "submission.s.py"


def load_module(name, path):
    spec = importlib.util.spec_from_file_location(name, path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture(scope="session")
def tracker_module():
    return load_module("balance_tracker", TRACKER_PATH)


@pytest.fixture(scope="session")
def helper_module():
    return load_module("shielded_helper", HELPER_PATH)


@pytest.fixture
def tracker(tracker_module):
    return tracker_module.init_balance_tracker("alice")


@pytest.fixture
def client():
    from contracting.client import ContractingClient

    client = ContractingClient(signer="operator", metering=False)
    client.flush()
    client.set_submission_contract(str(submission_path()))
    return client


@pytest.fixture
def contract(client):
    code = CONTRACT_PATH.read_text()
    client.submit(code, name="con_shielded_account", owner=None)
    return client.get_contract("con_shielded_account")
