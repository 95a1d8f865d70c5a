"""
End-to-end tests of the frame pipeline, configuration and scenarios.
"""

import logging

import numpy as np
import pytest
import pic2d
from pic2d import scenarios
from pic2d.core.config import SimulationConfig, InteractionType
from pic2d.core.grid import GridArrays, CellType
from pic2d.core.particles import ParticleArrays
from pic2d.main_headless import main
from pic2d.simulation import FluidSimulation


class TestSingleParticle:
    """One particle falling in the centre cell of a 3x3 grid."""

    def make_sim(self, backend):
        config = SimulationConfig(size=(3, 3), cell_size=(1.0, 1.0), num_particles=1,
                                  gravity=-9.8, delta_time=0.1, particle_radius=0.1,
                                  pressure_iterations=1, backend=backend)
        particles = ParticleArrays.from_positions(np.array([[1.5, 1.5]]))
        return FluidSimulation(config, GridArrays.allocate((3, 3)), particles)

    def test_one_step(self, backend):
        sim = self.make_sim(backend)

        sim.step()

        assert sim.particles.velocity_y[0] == pytest.approx(-0.98, abs=1e-5)
        assert sim.particles.velocity_x[0] == pytest.approx(0.0, abs=1e-6)
        np.testing.assert_allclose(sim.particles.get_positions()[0], [1.5, 1.402], atol=1e-5)
        assert sim.grid.cell_type[4] == CellType.WATER
        assert sim.frame == 1

    def test_statistics(self, backend):
        sim = self.make_sim(backend)
        sim.step()

        stats = sim.get_statistics()

        assert stats['frame'] == 1
        assert stats['particles'] == 1
        assert stats['water_cells'] == 1
        assert stats['max_speed'] == pytest.approx(0.98, abs=1e-5)
        assert stats['hash_occupied_cells'] == 1


class TestConfig:

    @pytest.mark.parametrize("overrides", [
        {'size': (2, 8)},
        {'cell_size': (0.0, 1.0)},
        {'num_particles': -1},
        {'particle_radius': -0.1},
        {'delta_time': -1.0},
        {'pressure_iterations': 0},
        {'flip_ratio': 1.5},
        {'interaction_input_radius': -2.0},
        {'interaction_input_type': 7},
    ])
    def test_invalid_values_rejected(self, overrides):
        config = SimulationConfig(**overrides)

        with pytest.raises(ValueError):
            config.validate()

    def test_defaults_are_valid(self):
        config = SimulationConfig()
        config.validate()
        assert config.over_relaxation == pytest.approx(1.9)
        assert config.total_cells == 64 * 32

    def test_from_dict_converts_and_warns(self):
        with pytest.warns(UserWarning, match="colour"):
            config = SimulationConfig.from_dict({
                'size': [10, 6],
                'interaction_input_type': 2,
                'colour': 'blue',
            })

        assert config.size == (10, 6)
        assert config.interaction_input_type is InteractionType.DESTROY_TERRAIN

    def test_grid_size_mismatch(self):
        config = SimulationConfig(size=(8, 6))

        with pytest.raises(ValueError, match="Grid"):
            FluidSimulation(config, GridArrays.allocate((6, 8)))

    def test_particle_capacity_too_small(self):
        config = SimulationConfig(size=(8, 6), num_particles=5)

        with pytest.raises(ValueError, match="Particle"):
            FluidSimulation(config, particles=ParticleArrays.allocate(3))

    def test_supplied_particles_are_live(self, backend):
        config = SimulationConfig(size=(8, 8), delta_time=0.1, backend=backend)
        particles = ParticleArrays.from_positions(np.array([[4.5, 4.5]]))

        sim = FluidSimulation(config, GridArrays.allocate((8, 8)), particles)
        sim.step()

        assert sim.n_active == 1
        assert config.num_particles == 1
        assert particles.velocity_y[0] == pytest.approx(-0.98, abs=1e-5)
        assert sim.grid.cell_type[sim.grid.cell_index(4, 4)] == CellType.WATER

    def test_clear_interaction(self):
        config, grid, particles = scenarios.create_basin(cols=24, rows=16)
        sim = FluidSimulation(config, grid, particles)
        terrain_before = grid.count(CellType.TERRAIN)

        sim.set_interaction((12.0, 8.0), InteractionType.DESTROY_TERRAIN, radius=4.0)
        sim.clear_interaction()
        sim.step()

        assert config.interaction_input_type is InteractionType.NONE
        assert grid.count(CellType.TERRAIN) == terrain_before


class TestScenarios:

    def test_dam_break_runs(self, backend):
        config, grid, particles = scenarios.create_dam_break(cols=24, rows=16)
        config.backend = backend
        sim = FluidSimulation(config, grid, particles)
        border = grid.as_2d(grid.cell_type)[0, :].copy()

        sim.run(10)

        n = sim.n_active
        w, h = grid.bounds_size
        assert n > 0
        assert np.all(np.isfinite(particles.velocity_x[:n]))
        assert np.all(np.isfinite(particles.velocity_y[:n]))
        assert np.all((particles.position_x[:n] >= 0) & (particles.position_x[:n] <= w))
        assert np.all((particles.position_y[:n] >= 0) & (particles.position_y[:n] <= h))
        np.testing.assert_array_equal(grid.as_2d(grid.cell_type)[0, :], border)
        assert grid.count(CellType.WATER) > 0
        assert sim.frame == 10

    def test_basin_erosion(self, backend):
        config, grid, particles = scenarios.create_basin(cols=24, rows=16)
        config.backend = backend
        sim = FluidSimulation(config, grid, particles)
        terrain_before = grid.count(CellType.TERRAIN)
        stone_before = grid.count(CellType.STONE)
        assert terrain_before > 0

        w, h = config.bounds_size
        sim.set_interaction((0.5 * w, 0.5 * h), InteractionType.DESTROY_TERRAIN, radius=4.0)
        sim.step()

        assert grid.count(CellType.TERRAIN) < terrain_before
        assert grid.count(CellType.STONE) == stone_before

    def test_block_positions_spacing(self):
        positions = scenarios.generate_block_positions(0.0, 0.0, 4.0, 4.0, 1.0)

        assert len(positions) > 0
        assert np.all(positions >= 0.0)
        assert np.all(positions < 4.0)


class TestHeadless:

    def test_runs_scenario(self, capsys):
        assert main(["--cols", "16", "--rows", "12", "--steps", "3",
                     "--backend", "cpu", "--report-every", "1"]) == 0
        out = capsys.readouterr().out
        assert "Step     3" in out

    def test_invalid_config_returns_error(self, capsys):
        assert main(["--cols", "16", "--rows", "12", "--steps", "1",
                     "--backend", "cpu", "--pressure-iters", "0"]) == 1
        assert "Invalid configuration" in capsys.readouterr().out

    def test_repeated_runs_keep_one_handler(self):
        args = ["--cols", "16", "--rows", "12", "--steps", "1", "--backend", "cpu"]
        main(args)
        handlers = len(logging.getLogger("pic2d").handlers)

        main(args)

        assert len(logging.getLogger("pic2d").handlers) == handlers == 1
