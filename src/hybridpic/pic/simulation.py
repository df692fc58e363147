"""
Hybrid PIC Time Advance (Predictor-Predictor-Corrector)

Each step runs the same field stage three times:

    stage(E_in, B_in):
        Bnew = Faraday(E_in, B_in)          fill(Bnew)
        J    = Ampere(Bnew)                 fill(J)
        Enew = Ohm(Bnew, J, N, V)           fill(Enew)

    predictor 1: stage(E, B)     -> Eavg, Bavg = avg(E, Enew), avg(B, Bnew)
                 push ions in (Eavg, Bavg), redeposit, recompute N, V
    predictor 2: stage(Eavg, B)  -> Eavg, Bavg = avg(E, Enew), avg(B, Bnew)
                 push ions in (Eavg, Bavg), redeposit, recompute N, V
    corrector:   stage(Eavg, B)  -> E, B = Enew, Bnew; t += dt

Both pushes start from the ion state at the beginning of the step, so the
ions advance by one dt per step and the second push sees the refined
midpoint fields. This approximates an implicit midpoint (Crank-Nicolson)
update without solving a nonlinear system.
"""

import logging

import numpy as np

from ..diagnostics import (
    DiagnosticsWriter, electric_energy, kinetic_energy, magnetic_energy,
)
from ..config import make_profile
from ..errors import ConfigurationError, NumericalDegeneracy
from .boundary import create_boundary_condition
from .field import Field, VectorField, average
from .field_solver import Ampere, Faraday, Ohm
from .gridlayout import Direction, GridLayout, Quantity
from .moments import bulk_velocity, total_density
from .mover import BorisPusher
from .population import Population

logger = logging.getLogger(__name__)


class HybridSimulation:
    """
    Owns the field buffers and runs the predictor-corrector cycle.

    Args:
        layout: Shared GridLayout
        populations: List of Population (particles already loaded)
        boundary_condition: BoundaryCondition
        dt: Time step
        ohm: Ohm operator (default: Ohm(layout) with zero resistivity and Te)
        pusher: Pusher with the same dt (default: BorisPusher(layout, dt))
        diagnostics: DiagnosticsWriter or None
        diag_every: Write diagnostics every this many steps
        write_particles: Also write particle snapshots
        parallel_deposit: Use the parallel deposition kernel
    """

    def __init__(self, layout, populations, boundary_condition, dt, ohm=None,
                 pusher=None, diagnostics=None, diag_every=1, write_particles=True,
                 parallel_deposit=False):
        if layout is None:
            raise ConfigurationError("GridLayout is null")
        if dt <= 0.0:
            raise ConfigurationError(f"dt must be positive, got {dt}")

        self.layout = layout
        self.populations = list(populations)
        self.boundary_condition = boundary_condition
        self.dt = dt

        self.E = VectorField(layout, "E")
        self.B = VectorField(layout, "B")
        self.Enew = VectorField(layout, "E")
        self.Bnew = VectorField(layout, "B")
        self.Eavg = VectorField(layout, "E")
        self.Bavg = VectorField(layout, "B")
        self.J = VectorField(layout, "J")
        self.V = VectorField(layout, "V")
        self.N = Field(layout, Quantity.N)

        self.faraday = Faraday(layout, dt)
        self.ampere = Ampere(layout)
        self.ohm = Ohm(layout) if ohm is None else ohm
        if pusher is None:
            pusher = BorisPusher(layout, dt)
        elif getattr(pusher, "dt", dt) != dt:
            raise ConfigurationError(
                f"Pusher dt ({pusher.dt}) does not match simulation dt ({dt})"
            )
        self.pusher = pusher

        self.diagnostics = diagnostics
        self.diag_every = diag_every
        self.write_particles = write_particles
        self.parallel_deposit = parallel_deposit

        self.time = 0.0
        self.n_steps = 0
        self.history = []

    # ==================== SETUP ====================

    def magnetic_init(self, bx, by, bz):
        """Seed B on each component's domain nodes from profile closures."""
        self.B.zero()
        for component, profile in zip(self.B.components, (bx, by, bz)):
            component.set_from(profile)
        self.boundary_condition.fill(self.B)

    def initialize(self, bx, by, bz):
        """
        Set initial fields and moments, then write the first snapshot.

        Args:
            bx, by, bz: Profile closures x -> B component
        """
        self.magnetic_init(bx, by, bz)

        self.ampere(self.B, self.J)
        self.boundary_condition.fill(self.J)

        self.update_moments()

        self.ohm(self.B, self.J, self.N, self.V, self.E)
        self.boundary_condition.fill(self.E)

        self.time = 0.0
        self.n_steps = 0
        self.history = [self.energies()]
        self._write_diagnostics("truncate")

        logger.info(
            "Initialized %d populations on %r, dt=%g",
            len(self.populations), self.layout, self.dt,
        )

    # ==================== CYCLE PIECES ====================

    def update_moments(self):
        """Deposit every population, fold and fill its moments, then sum N and V."""
        bc = self.boundary_condition
        for pop in self.populations:
            pop.deposit(parallel=self.parallel_deposit)
            bc.fold(pop.density)
            bc.fold(pop.flux)
            bc.fill(pop.density)
            bc.fill(pop.flux)

        total_density(self.populations, self.N)
        bulk_velocity(self.populations, self.N, self.V)

    def stage(self, E_in, B_in):
        """
        One field stage: Faraday from (E_in, B_in), then Ampere, then Ohm.

        Writes only Bnew, J and Enew.

        Returns:
            (Enew, Bnew)
        """
        bc = self.boundary_condition

        self.faraday(E_in, B_in, self.Bnew)
        bc.fill(self.Bnew)

        self.ampere(self.Bnew, self.J)
        bc.fill(self.J)

        self.ohm(self.Bnew, self.J, self.N, self.V, self.Enew)
        bc.fill(self.Enew)

        return self.Enew, self.Bnew

    def push_particles(self, E, B, snapshots=None):
        """
        Push every population in (E, B) and apply the particle boundary.

        Args:
            snapshots: Optional per-population states to restore before the push
        """
        for i, pop in enumerate(self.populations):
            if snapshots is not None:
                pop.particles.restore(snapshots[i])
            self.pusher(pop.particles, E, B)
            self.boundary_condition.particles(pop.particles)

    def _predict(self, E_in, snapshots):
        Enew, Bnew = self.stage(E_in, self.B)
        average(self.E, Enew, self.Eavg)
        average(self.B, Bnew, self.Bavg)

        self.push_particles(self.Eavg, self.Bavg, snapshots)
        self.update_moments()

    def step(self):
        """Advance fields and particles by one dt."""
        snapshots = [pop.particles.snapshot() for pop in self.populations]

        logger.debug("t=%g: predictor 1", self.time)
        self._predict(self.E, snapshots)

        logger.debug("t=%g: predictor 2", self.time)
        self._predict(self.Eavg, snapshots)

        logger.debug("t=%g: corrector", self.time)
        Enew, Bnew = self.stage(self.Eavg, self.B)

        self.E.copy_from(Enew)
        self.B.copy_from(Bnew)

        self.time += self.dt
        self.n_steps += 1

    def run(self, final_time):
        """
        Step until time reaches final_time.

        Returns:
            history: List of energy records, one per step plus the initial one

        Raises:
            NumericalDegeneracy: An energy became NaN or infinite
        """
        # Half-step tolerance avoids an extra step from accumulated rounding
        while self.time < final_time - 0.5 * self.dt:
            self.step()

            record = self.energies()
            self.history.append(record)
            if self.n_steps % self.diag_every == 0:
                self._write_diagnostics("append")

            logger.info(
                "Step %d  t=%.4f / %.4f  W_B=%.6e  W_E=%.6e  W_K=%.6e",
                self.n_steps, self.time, final_time,
                record["magnetic"], record["electric"], record["kinetic"],
            )

            if not np.isfinite(record["magnetic"] + record["electric"] + record["kinetic"]):
                raise NumericalDegeneracy(f"Non-finite energy at step {self.n_steps}")

        return self.history

    # ==================== DIAGNOSTICS ====================

    def energies(self):
        dx = self.layout.cell_size(Direction.X)
        return {
            "time": self.time,
            "magnetic": magnetic_energy(self.B),
            "electric": electric_energy(self.E),
            "kinetic": kinetic_energy(self.populations, dx),
        }

    def _write_diagnostics(self, mode):
        if self.diagnostics is None:
            return
        self.diagnostics.write_fields(self.B, self.E, self.V, self.N, self.time, mode)
        if self.write_particles:
            self.diagnostics.write_particles(self.populations, self.time, mode)


# ==================== ASSEMBLY ====================

def build_simulation(config):
    """
    Assemble and initialize a HybridSimulation from a SimulationConfig.

    Args:
        config: SimulationConfig

    Returns:
        HybridSimulation ready to run()
    """
    grid = config.grid
    layout = GridLayout(grid.grid_size, grid.cell_size, grid.nbr_ghosts)
    boundary = create_boundary_condition(config.boundary, layout)
    rng = np.random.default_rng(config.seed)

    populations = []
    for pop_config in config.populations:
        pop = Population(pop_config.name, layout, species=pop_config.species,
                         index_policy=config.index_policy)
        pop.load_particles(
            pop_config.nppc,
            make_profile(pop_config.density),
            vth=pop_config.vth,
            drift=pop_config.drift,
            rng=rng,
            quiet_start=pop_config.quiet_start,
        )
        populations.append(pop)

    ohm_config = config.ohm
    ohm = Ohm(
        layout,
        eta=ohm_config.eta,
        nu=ohm_config.nu,
        electron_temperature=ohm_config.electron_temperature,
        density_floor=ohm_config.density_floor,
        on_degenerate=ohm_config.on_degenerate,
    )
    pusher = BorisPusher(layout, config.time.dt, index_policy=config.index_policy)

    diag_config = config.diagnostics
    writer = None
    if diag_config.enabled:
        writer = DiagnosticsWriter(diag_config.fields_path, diag_config.particles_path)

    simulation = HybridSimulation(
        layout, populations, boundary, config.time.dt,
        ohm=ohm, pusher=pusher, diagnostics=writer,
        diag_every=diag_config.every,
        write_particles=diag_config.write_particles,
        parallel_deposit=config.parallel_deposit,
    )
    simulation.initialize(*config.profiles())
    return simulation


def run_simulation(config):
    """Build a simulation from config and run it to config.time.final_time."""
    simulation = build_simulation(config)
    simulation.run(config.time.final_time)
    return simulation
