"""Shared fixtures: synthetic heating-season and certificate tables."""

import numpy as np
import pandas as pd
import pytest


HEATING_START = "2023-10-15"
HEATING_DAYS = 151


def make_heating_frame(seed: int = 7) -> pd.DataFrame:
    """
    151 consecutive days. Energy falls with outdoor temperature (Text) and
    irradiance (Iext); Sundays are zero-activity days; three working days
    carry gross metering spikes.
    """
    rng = np.random.default_rng(seed)
    dates = pd.date_range(HEATING_START, periods=HEATING_DAYS, freq="D")
    text = rng.uniform(-5.0, 15.0, HEATING_DAYS)
    iext = rng.uniform(0.0, 200.0, HEATING_DAYS)
    energy = 800.0 - 25.0 * text - 0.8 * iext + rng.normal(0.0, 20.0, HEATING_DAYS)

    sundays = dates.day_name() == "Sunday"
    energy[sundays] = rng.uniform(0.0, 5.0, int(sundays.sum()))

    working = np.flatnonzero(~sundays)
    energy[working[[10, 55, 100]]] += 600.0

    return pd.DataFrame({
        "Date": dates.strftime("%d/%m/%Y"),
        "Energy": np.round(energy, 2),
        "Text": np.round(text, 2),
        "Iext": np.round(iext, 2),
    })


def make_certificate_frame(seed: int = 11, n_per_group: int = 100) -> pd.DataFrame:
    """
    Three well-separated building groups in a 2-D latent space, each latent
    dimension observed through three noisy attributes, plus an identifier
    and a categorical column.
    """
    rng = np.random.default_rng(seed)
    centers = np.array([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0]])
    latent = np.vstack([
        rng.normal(loc=c, scale=1.0, size=(n_per_group, 2)) for c in centers
    ])
    n = len(latent)

    frame = pd.DataFrame({"CertificateId": [f"EPC-{i:05d}" for i in range(n)]})
    for j, name in enumerate(["HeatDemand", "PrimaryEnergy", "Emissions"]):
        frame[name] = latent[:, 0] * (1.0 + 0.1 * j) + rng.normal(0.0, 0.3, n) + 50.0
    for j, name in enumerate(["FloorArea", "Volume", "Envelope"]):
        frame[name] = latent[:, 1] * (1.0 + 0.1 * j) + rng.normal(0.0, 0.3, n) + 100.0
    frame["EnergyClass"] = rng.choice(["A", "B", "C", "D"], size=n)
    return frame


@pytest.fixture
def heating_frame() -> pd.DataFrame:
    return make_heating_frame()


@pytest.fixture
def heating_csv(tmp_path, heating_frame):
    path = tmp_path / "heating.csv"
    heating_frame.to_csv(path, sep=";", decimal=",", index=False)
    return path


@pytest.fixture
def certificate_frame() -> pd.DataFrame:
    return make_certificate_frame()


@pytest.fixture
def certificate_csv(tmp_path, certificate_frame):
    path = tmp_path / "certificates.csv"
    certificate_frame.to_csv(path, sep=";", decimal=",", index=False)
    return path


@pytest.fixture
def linear_frame() -> pd.DataFrame:
    rng = np.random.default_rng(3)
    x1 = rng.uniform(0.0, 10.0, 60)
    x2 = rng.uniform(-5.0, 5.0, 60)
    y = 2.0 + 1.5 * x1 - 0.7 * x2 + rng.normal(0.0, 0.5, 60)
    return pd.DataFrame({"y": y, "x1": x1, "x2": x2})
