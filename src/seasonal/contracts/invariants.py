"""Formal pipeline invariants.

This file documents what each stage MUST produce. Use it as a reviewer
anchor and system reference.
"""

PIPELINE_INVARIANTS = {
    "series": [
        "Bands are data variables with dims (time, y, x)",
        "'time' coordinate is datetime64",
        "All member rasters share band set, shape, transform and CRS",
    ],

    "composite": [
        "Bands are float with dims (y, x), same names and grid as the series",
        "Pixel is NaN iff every selected timestamp is NaN there",
        "Otherwise pixel is the mean of the valid contributing values",
    ],

    "tct": [
        "Output band i equals row i of the coefficient matrix applied to the pixel vector",
        "Output pixel is NaN if any input band is NaN",
        "Output bands are named after the configured output names",
    ],

    "covariance": [
        "Only pixels valid in every band and inside the region contribute",
        "Mean and covariance use the same N samples (population normaliser 1/N)",
        "Covariance is exactly symmetric",
        "N >= P + 1",
    ],

    "eigen": [
        "Eigenvalues sorted descending",
        "Eigenvector rows orthonormal and paired 1:1 with eigenvalues",
        "Zero eigenvalues are legal output",
    ],

    "pca": [
        "Component k is the k-th largest variance direction",
        "Components are scaled by 1/sqrt(max(eigenvalue, eigen_floor))",
        "No NaN/Inf for finite input pixels",
    ],
}

# Which stages are optional vs required per season
STAGE_REQUIREMENTS = {
    "composite": "REQUIRED",
    "tct": "OPTIONAL",       # Only when enabled in config
    "covariance": "REQUIRED",
    "eigen": "REQUIRED",
    "pca": "REQUIRED",
}
