"""
Face recognition with PCA, LDA and ICA subspaces.

This package provides modules for:
- matrix: dense Matrix container and element-wise/algebraic operators
- determinant: recursive determinant and cofactor (adjugate) computation
- providers: pluggable linear algebra kernels (numpy/LAPACK, torch)
- inverse: LU-based matrix inversion
- pca: eigenface PCA
- lda: scatter matrices and LDA (Fisherfaces)
- ica: ICA architecture II
- distance: L1, L2 and cosine distances
- database: trained database and nearest-neighbour recognition
- persistence: matrix and database serialization
- preprocessing: image directory and LFW corpus loading
- metrics: recognition metrics and comparison tables
- cross_validation: hold-one-observation-out study
- utils: logging setup, figures and model dumps
"""
