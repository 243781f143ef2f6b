import pytest

from indirector_core import IndirectorContext, IndirectorSettings, set_context


@pytest.fixture
def settings(tmp_path):
    return IndirectorSettings(file_directory=str(tmp_path))


@pytest.fixture
def context(settings):
    ctx = IndirectorContext(settings)
    set_context(ctx)
    yield ctx
    set_context(None)
