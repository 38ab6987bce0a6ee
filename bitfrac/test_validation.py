import pytest
from bitfrac import validation as v


def test_amount():
    assert v.is_valid_amount(1)
    assert not v.is_valid_amount(0)
    assert not v.is_valid_amount(-5)
    assert not v.is_valid_amount(True)
    assert not v.is_valid_amount("10")


@pytest.mark.parametrize("value,ok", [
    (999, False), (1000, True), (10**12, True), (10**12 + 1, False),
])
def test_asset_value_bounds(value, ok):
    assert v.is_valid_asset_value(value) is ok


@pytest.mark.parametrize("duration,ok", [(11, False), (12, True), (144, True), (145, False)])
def test_duration_bounds(duration, ok):
    assert v.is_valid_duration(duration) is ok


def test_kyc_level():
    assert v.is_valid_kyc_level(0)
    assert v.is_valid_kyc_level(5)
    assert not v.is_valid_kyc_level(6)


def test_expiry_window():
    assert not v.is_valid_expiry(1000, 1000)
    assert v.is_valid_expiry(1001, 1000)
    assert v.is_valid_expiry(1000 + v.MAX_EXPIRY, 1000)
    assert not v.is_valid_expiry(1001 + v.MAX_EXPIRY, 1000)


def test_minimum_votes():
    assert not v.is_valid_minimum_votes(0)
    assert v.is_valid_minimum_votes(v.TOTAL_SUPPLY)
    assert not v.is_valid_minimum_votes(v.TOTAL_SUPPLY + 1)


def test_strings():
    assert v.is_valid_uri("ipfs://asset")
    assert not v.is_valid_uri("")
    assert v.is_valid_uri("x" * 256)
    assert not v.is_valid_uri("x" * 257)
    assert not v.is_valid_title(None)


def test_decimals():
    assert v.is_valid_decimals(0)
    assert v.is_valid_decimals(18)
    assert not v.is_valid_decimals(19)


def test_principal_check_is_narrow():
    admin, ledger = b'\xaa' * 20, b'\x00' * 19 + b'\x01'
    assert not v.is_valid_principal(admin, admin, ledger)
    assert not v.is_valid_principal(ledger, admin, ledger)
    assert v.is_valid_principal(b'\x11' * 20, admin, ledger)
    # Malformed addresses are not this check's concern
    assert v.is_valid_principal(b'', admin, ledger)


def test_proposal_threshold():
    assert v.PROPOSAL_THRESHOLD == 10_000


def test_fits_uint64():
    assert v.fits_uint64(v.MAX_UINT64)
    assert not v.fits_uint64(v.MAX_UINT64 + 1)


def test_error_codes_are_stable():
    from bitfrac import errors
    assert errors.AccessDenied.code == 100
    assert errors.NotFound.code == 101
    assert errors.InsufficientBalance.code == 109
    assert errors.KYCRequired.code == 105
    assert errors.KYCExpired.code == 125
    assert issubclass(errors.KYCExpired, errors.KYCRequired)
    assert errors.ERRORS_BY_CODE[105] is errors.KYCRequired
    assert errors.ERRORS_BY_CODE[125] is errors.KYCExpired
    assert errors.ERRORS_BY_CODE[122] is errors.NothingToClaim

    err = errors.VoteExists("Already voted on proposal 3")
    assert err.to_dict() == {'code': 106, 'kind': 'VoteExists', 'message': 'Already voted on proposal 3'}
    assert errors.QuorumNotMet().message == 'QuorumNotMet'
