import pytest

from helpers import make_proc_tree


@pytest.fixture
def proc_root(tmp_path):
    """Complete fixture /proc tree"""
    return make_proc_tree(tmp_path / "proc")
