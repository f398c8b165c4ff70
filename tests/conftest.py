import pytest

from levelchunk.reporting import SilentReporter, set_reporter, set_verbosity


@pytest.fixture(autouse=True)
def silent_reporter():
    rep = SilentReporter()
    set_reporter(rep)
    set_verbosity(0)
    yield rep
    set_reporter(SilentReporter())
