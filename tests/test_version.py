import nscache


def test_version() -> None:
    assert hasattr(nscache, "__version__")
    assert isinstance(nscache.__version__, str)
    assert len(nscache.__version__) > 0


def test_title() -> None:
    assert hasattr(nscache, "__title__")
    assert isinstance(nscache.__title__, str)
    assert len(nscache.__title__) > 0
