import pytest

from sifpull.adapters import sif
from tests.adapters.backends.sif_builder import build_sif


def test_reads_used_descriptor_types(tmp_path):
    path = build_sif(tmp_path / "a.sif", [sif.DATA_PARTITION, sif.DATA_SIGNATURE])
    assert sif.read_data_types(path) == [sif.DATA_PARTITION, sif.DATA_SIGNATURE]
    assert not sif.is_oci_sif(path)


def test_detects_oci_sif(tmp_path):
    path = build_sif(tmp_path / "oci.sif", [sif.DATA_OCI_ROOT_INDEX, sif.DATA_OCI_BLOB])
    assert sif.is_oci_sif(path)


def test_rejects_non_sif(tmp_path):
    path = build_sif(tmp_path / "x.sif", [sif.DATA_PARTITION], magic=b"NOT_A_SIF")
    with pytest.raises(ValueError, match="not a SIF file"):
        sif.read_data_types(path)


def test_rejects_short_file(tmp_path):
    path = tmp_path / "short.sif"
    path.write_bytes(b"SIF")
    with pytest.raises(ValueError, match="too short"):
        sif.read_data_types(path)


def test_rejects_truncated_descriptors(tmp_path):
    path = build_sif(tmp_path / "t.sif", [sif.DATA_PARTITION, sif.DATA_PARTITION])
    path.write_bytes(path.read_bytes()[:-10])
    with pytest.raises(ValueError, match="truncated"):
        sif.read_data_types(path)
