import pytest

from tests.helpers.fake_raster import make_fake_series


@pytest.fixture
def seasonal_series():
    """Eight-by-ten six-band series with wet-season and dry-season dates."""
    dates = ["2021-01-10", "2021-02-15", "2021-06-15", "2021-08-01", "2021-11-20"]
    ds, _ = make_fake_series(dates, shape=(8, 10))
    return ds
