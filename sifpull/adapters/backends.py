"""
Wiring of the shipped backend adapters.
"""
from sifpull.kernel.contracts import BackendSet


def default_backends() -> BackendSet:
    """
    Build the default adapter for every transport.
    Imports are local so the kernel stays importable without the adapters.
    """
    from sifpull.adapters.library import LibraryAdapter
    from sifpull.adapters.net import NetAdapter
    from sifpull.adapters.oci import OciAdapter
    from sifpull.adapters.oras import OrasAdapter
    from sifpull.adapters.shub import ShubAdapter

    return BackendSet(
        library=LibraryAdapter(),
        shub=ShubAdapter(),
        oras=OrasAdapter(),
        net=NetAdapter(),
        oci=OciAdapter(),
    )
