import pytest, shutil, tempfile
from bitfrac import errors
from bitfrac.ledger import AssetLedger

ADMIN = b'\xaa' * 20
ALICE = b'\x11' * 20


@pytest.fixture
def ledger():
    dir_ = tempfile.mkdtemp()
    lg = AssetLedger(dir_, admin_address=ADMIN)
    yield lg
    lg.close()
    shutil.rmtree(dir_)


def sample(ledger, name, labels=None):
    return ledger.monitor.registry.get_sample_value(name, labels or {})


def test_operation_counters(ledger):
    ledger.register_asset(ADMIN, 1, "ipfs://a", 1000)
    with pytest.raises(errors.AccessDenied):
        ledger.register_asset(ALICE, 1, "ipfs://a", 1000)

    assert sample(ledger, 'bitfrac_operations_total',
                  {'operation': 'register_asset', 'status': 'success'}) == 1.0
    assert sample(ledger, 'bitfrac_operations_total',
                  {'operation': 'register_asset', 'status': 'rejected'}) == 1.0
    assert sample(ledger, 'bitfrac_rejections_total', {'code': '100'}) == 1.0
    assert sample(ledger, 'bitfrac_operation_latency_seconds_count',
                  {'operation': 'register_asset'}) == 2.0


def test_gauges_follow_ledger(ledger):
    ledger.register_asset(ADMIN, 1, "ipfs://a", 1000)
    ledger.register_asset(ADMIN, 2, "ipfs://b", 1000)
    ledger.monitor.update()
    assert sample(ledger, 'bitfrac_assets') == 2.0
    assert sample(ledger, 'bitfrac_proposals') == 0.0
    assert sample(ledger, 'bitfrac_events') == 2.0


def test_status(ledger):
    ledger.register_asset(ADMIN, 1, "ipfs://a", 1000)
    status = ledger.status()
    assert status['assets'] == 1
    assert status['events'] == 1
    assert status['state_root'] == ledger.state_root.hex()
    assert status['admin_address'] == ADMIN.hex()


def test_stop_without_start_is_safe(ledger):
    ledger.monitor.stop_server()
    assert ledger.monitor.server is None
