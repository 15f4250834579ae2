from assetlib.library.hosted import HostedCatalog, HostedLibrary
from assetlib.library.local import LocalLibrary

__all__ = ["HostedCatalog", "HostedLibrary", "LocalLibrary"]
