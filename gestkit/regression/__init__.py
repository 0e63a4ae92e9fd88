from gestkit.regression.linear_regression import LinearRegression
from gestkit.regression.multidimensional_regression import MultidimensionalRegression

__all__ = ["LinearRegression", "MultidimensionalRegression"]
