"""
Tests for the version module of the Tetto SDK.
"""
import importlib
import re
from importlib import metadata as importlib_metadata
from unittest.mock import mock_open, patch

from tetto_sdk import __version__


def test_version_format():
    """Test that the version string follows semantic versioning"""
    assert re.match(r'^\d+\.\d+\.\d+', __version__)


@patch('importlib.metadata.version')
@patch('pathlib.Path.open', new_callable=mock_open, read_data=b'[project]\nversion = "1.2.3"\n')
def test_version_from_file(mock_open_file, mock_metadata_version):
    """When metadata lookup fails, pyproject.toml is read"""
    mock_metadata_version.side_effect = importlib_metadata.PackageNotFoundError
    import tetto_sdk.version as vmod
    importlib.reload(vmod)
    assert vmod.__version__ == "1.2.3"


@patch('importlib.metadata.version')
def test_version_from_metadata(mock_metadata_version):
    """When metadata lookup succeeds, version comes from metadata"""
    mock_metadata_version.return_value = "2.3.4"
    import tetto_sdk.version as vmod
    importlib.reload(vmod)
    assert vmod.__version__ == "2.3.4"


@patch('importlib.metadata.version')
@patch('pathlib.Path.open', side_effect=FileNotFoundError)
def test_version_file_not_found(mock_open_file, mock_metadata_version):
    """If pyproject.toml is missing, fall back to the default"""
    mock_metadata_version.side_effect = importlib_metadata.PackageNotFoundError
    import tetto_sdk.version as vmod
    importlib.reload(vmod)
    assert vmod.__version__ == "2.0.0"


@patch('importlib.metadata.version')
@patch('pathlib.Path.open', new_callable=mock_open, read_data=b'[tool.other]\nname = "x"\n')
def test_version_missing_key(mock_open_file, mock_metadata_version):
    """A pyproject.toml without [project].version falls back to the default"""
    mock_metadata_version.side_effect = importlib_metadata.PackageNotFoundError
    import tetto_sdk.version as vmod
    importlib.reload(vmod)
    assert vmod.__version__ == "2.0.0"
