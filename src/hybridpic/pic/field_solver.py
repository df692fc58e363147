"""
1D Electromagnetic Field Operators for the Hybrid Model

Implements the three field updates of the hybrid cycle on the staggered grid:
- Ampere:   J = curl(B)                (dual B -> primal J, Jx = 0 in 1D)
- Faraday:  B_new = B - dt * curl(E)   (primal E -> dual B, Bx constant in 1D)
- Ohm:      E = -V x B + (J x B)/N - grad(Pe)/N + eta*J - nu*laplacian(J)

Stencils read one neighbour on each side of the owned domain, so the
input fields must have their ghost nodes filled by the boundary condition
before the call. Outputs are written on the owned domain only.

Units are normalised (B0, n0, v_A, 1/Omega_p), so mu0 and e are 1.

Reference:
    Winske & Omidi (1993), "Hybrid codes: past, present and future"
    Matthews (1994), "Current advance method and cyclic leapfrog for
    2D multispecies hybrid plasma simulations", J. Comput. Phys. 112
"""

import logging

import numba

from ..errors import ConfigurationError, NumericalDegeneracy, UnsupportedDimensionError
from .gridlayout import Direction

logger = logging.getLogger(__name__)


def _check_layout(layout):
    if layout is None:
        raise ConfigurationError("GridLayout is null")
    return layout


def _check_dimension(layout, name):
    if layout.dimension != 1:
        raise UnsupportedDimensionError(
            f"{name} not implemented for dimension {layout.dimension}"
        )


# ==================== KERNELS ====================


@numba.njit
def ampere_1d(by, bz, jx, jy, jz, dx, primal_start, primal_end, dual_start, dual_end):
    """
    Discrete curl(B) on the staggered grid.

    Jx is dual and identically zero in 1D. Jy, Jz are primal and use a
    backward difference of the dual By, Bz:
        Jy[i] = -(Bz[i] - Bz[i-1]) / dx
        Jz[i] =  (By[i] - By[i-1]) / dx

    Args:
        by, bz: Magnetic field components (dual)
        jx, jy, jz: Output current density (modified in-place)
        dx: Cell size
        primal_start, primal_end: Owned primal index range (inclusive)
        dual_start, dual_end: Owned dual index range (inclusive)
    """
    for ix in range(dual_start, dual_end + 1):
        jx[ix] = 0.0

    for ix in range(primal_start, primal_end + 1):
        jy[ix] = -(bz[ix] - bz[ix - 1]) / dx
        jz[ix] = (by[ix] - by[ix - 1]) / dx


@numba.njit
def faraday_1d(ey, ez, bx, by, bz, bnx, bny, bnz, dx, dt,
               primal_start, primal_end, dual_start, dual_end):
    """
    Advance B by dt with the discrete -curl(E).

    Forward difference of the primal Ey, Ez onto the dual By, Bz:
        Bnew_y[i] = By[i] + dt * (Ez[i+1] - Ez[i]) / dx
        Bnew_z[i] = Bz[i] - dt * (Ey[i+1] - Ey[i]) / dx
    """
    for ix in range(primal_start, primal_end + 1):
        bnx[ix] = bx[ix]

    for ix in range(dual_start, dual_end + 1):
        bny[ix] = by[ix] + dt * (ez[ix + 1] - ez[ix]) / dx
        bnz[ix] = bz[ix] - dt * (ey[ix + 1] - ey[ix]) / dx


@numba.njit
def ohm_1d(bx, by, bz, jx, jy, jz, n, vx, vy, vz, ex, ey, ez,
           dx, te, eta, nu, n_floor,
           primal_start, primal_end, dual_start, dual_end):
    """
    Generalised Ohm's law for massless isothermal electrons.

    Ex lives on the dual grid: dual index i sits between primal nodes i and
    i+1, so primal quantities are averaged over (i, i+1). Ey and Ez live on
    the primal grid: primal node i sits between dual cells i-1 and i, so
    dual quantities are averaged over (i-1, i).

    Densities below n_floor are replaced by n_floor.

    Returns:
        n_clamped: Number of evaluation points where the floor was applied
    """
    n_clamped = 0
    dx2 = dx * dx

    # Ex (dual)
    for ix in range(dual_start, dual_end + 1):
        n_loc = 0.5 * (n[ix] + n[ix + 1])
        if n_loc < n_floor:
            n_loc = n_floor
            n_clamped += 1

        vy_loc = 0.5 * (vy[ix] + vy[ix + 1])
        vz_loc = 0.5 * (vz[ix] + vz[ix + 1])
        jy_loc = 0.5 * (jy[ix] + jy[ix + 1])
        jz_loc = 0.5 * (jz[ix] + jz[ix + 1])
        by_loc = by[ix]
        bz_loc = bz[ix]

        ideal = -(vy_loc * bz_loc - vz_loc * by_loc)
        hall = (jy_loc * bz_loc - jz_loc * by_loc) / n_loc
        grad_pe = te * (n[ix + 1] - n[ix]) / dx / n_loc
        lap_j = (jx[ix + 1] - 2.0 * jx[ix] + jx[ix - 1]) / dx2

        ex[ix] = ideal + hall - grad_pe + eta * jx[ix] - nu * lap_j

    # Ey, Ez (primal)
    for ix in range(primal_start, primal_end + 1):
        n_loc = n[ix]
        if n_loc < n_floor:
            n_loc = n_floor
            n_clamped += 1

        by_loc = 0.5 * (by[ix - 1] + by[ix])
        bz_loc = 0.5 * (bz[ix - 1] + bz[ix])
        jx_loc = 0.5 * (jx[ix - 1] + jx[ix])
        bx_loc = bx[ix]

        ideal_y = -(vz[ix] * bx_loc - vx[ix] * bz_loc)
        hall_y = (jz[ix] * bx_loc - jx_loc * bz_loc) / n_loc
        lap_jy = (jy[ix + 1] - 2.0 * jy[ix] + jy[ix - 1]) / dx2
        ey[ix] = ideal_y + hall_y + eta * jy[ix] - nu * lap_jy

        ideal_z = -(vx[ix] * by_loc - vy[ix] * bx_loc)
        hall_z = (jx_loc * by_loc - jy[ix] * bx_loc) / n_loc
        lap_jz = (jz[ix + 1] - 2.0 * jz[ix] + jz[ix - 1]) / dx2
        ez[ix] = ideal_z + hall_z + eta * jz[ix] - nu * lap_jz

    return n_clamped


# ==================== OPERATORS ====================


class Ampere:
    """curl(B) -> J on a 1D layout."""

    def __init__(self, layout):
        self.layout = _check_layout(layout)

    def __call__(self, B, J):
        layout = self.layout
        _check_dimension(layout, "Ampere")
        ampere_1d(
            B.y.data, B.z.data,
            J.x.data, J.y.data, J.z.data,
            layout.cell_size(Direction.X),
            layout.primal_dom_start(), layout.primal_dom_end(),
            layout.dual_dom_start(), layout.dual_dom_end(),
        )
        return J


class Faraday:
    """
    B_new = B - dt * curl(E) on a 1D layout.

    Args:
        layout: GridLayout
        dt: Default time step, can be overridden per call
    """

    def __init__(self, layout, dt):
        self.layout = _check_layout(layout)
        self.dt = dt

    def __call__(self, E, B, Bnew, dt=None):
        layout = self.layout
        _check_dimension(layout, "Faraday")
        faraday_1d(
            E.y.data, E.z.data,
            B.x.data, B.y.data, B.z.data,
            Bnew.x.data, Bnew.y.data, Bnew.z.data,
            layout.cell_size(Direction.X),
            self.dt if dt is None else dt,
            layout.primal_dom_start(), layout.primal_dom_end(),
            layout.dual_dom_start(), layout.dual_dom_end(),
        )
        return Bnew


class Ohm:
    """
    Generalised Ohm's law closure (B, J, N, V) -> E.

    Args:
        layout: GridLayout
        eta: Resistivity (default: 0)
        nu: Hyper-resistivity (default: 0)
        electron_temperature: Isothermal electron temperature, Pe = N*Te (default: 0)
        density_floor: Smallest density used in the 1/N terms (default: 1e-6)
        on_degenerate: "clamp" to floor and log, or "raise" NumericalDegeneracy
    """

    def __init__(self, layout, eta=0.0, nu=0.0, electron_temperature=0.0,
                 density_floor=1e-6, on_degenerate="clamp"):
        self.layout = _check_layout(layout)
        if density_floor <= 0.0:
            raise ConfigurationError(f"density_floor must be positive, got {density_floor}")
        if on_degenerate not in ("clamp", "raise"):
            raise ConfigurationError(f"Unknown on_degenerate policy: {on_degenerate}")
        self.eta = eta
        self.nu = nu
        self.electron_temperature = electron_temperature
        self.density_floor = density_floor
        self.on_degenerate = on_degenerate

    def __call__(self, B, J, N, V, E):
        layout = self.layout
        _check_dimension(layout, "Ohm")
        n_clamped = ohm_1d(
            B.x.data, B.y.data, B.z.data,
            J.x.data, J.y.data, J.z.data,
            N.data, V.x.data, V.y.data, V.z.data,
            E.x.data, E.y.data, E.z.data,
            layout.cell_size(Direction.X),
            self.electron_temperature, self.eta, self.nu, self.density_floor,
            layout.primal_dom_start(), layout.primal_dom_end(),
            layout.dual_dom_start(), layout.dual_dom_end(),
        )
        if n_clamped:
            if self.on_degenerate == "raise":
                raise NumericalDegeneracy(
                    f"Density below floor {self.density_floor:g} at {n_clamped} points"
                )
            logger.warning(
                "Ohm: density clamped to floor %g at %d points", self.density_floor, n_clamped
            )
        return E
