from .quadrature import gauss_legendre, integrate, simplex_quadrature, values_at

__all__ = ['gauss_legendre', 'integrate', 'simplex_quadrature', 'values_at']
