from gestkit.classifiers.anbc import ANBC, ANBCModel

__all__ = ["ANBC", "ANBCModel"]
