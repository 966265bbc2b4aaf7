"""
Community structure of a simulated meadow data set
Rank-abundance curves, cover-abundance scales, NMDS and species selection

Demonstrates:
- ``cov2per`` / ``per2cov``: Braun-Blanquet and Londo conversions
- ``racurve``: rank-abundance and rank-frequency curves
- ``screeplot_nmds``: stress versus number of dimensions
- ``nmds`` + ``ordiselect``: abundant, well-fitted species only
- ``cv`` / ``sem``: dispersion of a site variable

Dataset
-------
30 plots with 12 species whose optima are spread along a moisture
gradient.  Field data are recorded on the Braun-Blanquet scale and
converted to mean percentage cover before analysis.
"""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from vegtools import (
    MatplotlibRenderer,
    cov2per,
    cv,
    nmds,
    ordiselect,
    per2cov,
    racurve,
    screeplot_nmds,
    sem,
    species_scores,
)

# ============================================================================
# Simulate field records on the Braun-Blanquet scale
# ============================================================================

rng = np.random.default_rng(7)
n_plots, n_species = 30, 12
moisture = np.linspace(0, 1, n_plots) + rng.normal(0, 0.05, n_plots)
optima = np.linspace(-0.1, 1.1, n_species)
widths = rng.uniform(0.15, 0.35, n_species)
peak_cover = rng.uniform(10, 80, n_species)

cover = peak_cover * np.exp(-((moisture[:, None] - optima) ** 2) / (2 * widths**2))
cover[cover < 0.5] = 0
cover = np.clip(cover + rng.uniform(0, 1, cover.shape) * (cover > 0), 0, 100)

species = [f"sp{i + 1:02d}" for i in range(n_species)]
veg_pct = pd.DataFrame(cover, columns=species)
veg_bb = per2cov(veg_pct, scale="braun.blanquet")
print("Field records (Braun-Blanquet):")
print(veg_bb.head())

# ============================================================================
# Back to percentage cover
# ============================================================================

veg = cov2per(veg_bb, scale="braun.blanquet")
londo = per2cov(veg, scale="londo")
print("Mean cover recoded on the Londo scale:")
print(londo.head())

# ============================================================================
# Rank-abundance and rank-frequency curves
# ============================================================================

fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(10, 4))
rel = racurve(veg, nlab=3, renderer=MatplotlibRenderer(ax1))
freq = racurve(
    veg, frequency=True, main="Rank-frequency diagram", renderer=MatplotlibRenderer(ax2)
)
fig.savefig("racurve.png", dpi=120)
plt.close(fig)
print(pd.DataFrame({"relative abundance": rel, "frequency": freq}).round(3))

# ============================================================================
# Scree plot and NMDS
# ============================================================================

veg = veg[veg.sum(axis=1) > 0]
fig, ax = plt.subplots()
stress = screeplot_nmds(veg, k=4, trymax=5, random_state=3, renderer=MatplotlibRenderer(ax))
fig.savefig("screeplot_nmds.png", dpi=120)
plt.close(fig)

ordination = nmds(veg, k=2, trymax=20, random_state=3)
print(f"NMDS stress (k=2): {ordination.stress:.3f}")

# ============================================================================
# Species selection for the ordination diagram
# ============================================================================

selected = ordiselect(veg, ordination, ablim=0.5, fitlim=0.6)
print(f"Selected by axes fit: {selected}")

env = pd.DataFrame({"moisture": moisture}).loc[veg.index]
selected_vars = ordiselect(veg, ordination, ablim=0.5, fitlim=0.6, method="vars", env=env)
print(f"Selected by moisture vector: {selected_vars}")

scores = species_scores(ordination).loc[selected]
fig, ax = plt.subplots()
ax.scatter(ordination.sites["NMDS1"], ordination.sites["NMDS2"], color="gray", s=10)
for name, (x, y) in scores.iterrows():
    ax.annotate(name, (x, y), color="#DF536B")
fig.savefig("nmds_selected.png", dpi=120)
plt.close(fig)

# ============================================================================
# Dispersion of the moisture gradient
# ============================================================================

print(f"Moisture: CV = {cv(moisture):.3f}, SEM = {sem(moisture):.4f}")
