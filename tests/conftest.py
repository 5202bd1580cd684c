from __future__ import annotations

import pytest

from fakes import FakeLiveUpdateServer, FakeTransport


@pytest.fixture
def server() -> FakeLiveUpdateServer:
    return FakeLiveUpdateServer(
        {
            "screen2:surface_1": {
                "offset": {"x": 0, "y": 0, "z": 0},
                "rotation": {"x": 0, "y": 0, "z": 0},
                "scale": {"x": 1, "y": 1, "z": 1},
            },
            "screen2:surface_2": {
                "offset": {"x": 5, "y": 5, "z": 5},
                "opacity": 1.0,
            },
        }
    )


@pytest.fixture
def transport(server: FakeLiveUpdateServer) -> FakeTransport:
    return FakeTransport(server)
