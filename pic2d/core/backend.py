"""
Stage registry and backend dispatch for the PIC solver.

Each frame is a fixed sequence of data-parallel stages (``STAGES``). Every
stage has a NumPy implementation on the ``cpu`` backend and, when Numba
is installed, a compiled one on the ``numba`` backend. A stage call goes
to the current backend unless the caller overrides it; a backend missing
a stage falls back to ``cpu``.
"""

import enum
import warnings
from typing import Optional, Dict, Callable, List
from dataclasses import dataclass

# Stage names in frame order
STAGES = (
    "integrate_particles",
    "apply_interaction",
    "empty_cells",
    "particles_to_grid",
    "fill_cells",
    "normalize_velocities",
    "project_pressure",
    "grid_to_particles",
    "clear_indices",
    "build_lookup",
    "build_start_indices",
    "push_particles_apart",
)

# Below this many particles or cells a pass is dominated by JIT dispatch cost
NUMBA_MIN_ELEMENTS = 2000


class Backend(enum.Enum):
    CPU = "cpu"
    NUMBA = "numba"

    @classmethod
    def parse(cls, name: str) -> 'Backend':
        """Backend from its name; ValueError listing the choices if unknown."""
        try:
            return cls(name.lower())
        except ValueError:
            choices = ", ".join(b.value for b in cls)
            raise ValueError(f"Unknown backend '{name}', choose from: {choices}") from None


@dataclass
class BackendInfo:
    backend: Backend
    available: bool
    description: str
    num_threads: int = 1


def _probe_backends() -> Dict[Backend, BackendInfo]:
    infos = {Backend.CPU: BackendInfo(Backend.CPU, True, "NumPy vectorized")}
    try:
        import numba
    except ImportError:
        infos[Backend.NUMBA] = BackendInfo(Backend.NUMBA, False, "numba not installed")
    else:
        infos[Backend.NUMBA] = BackendInfo(
            Backend.NUMBA, True, f"Numba {numba.__version__} parallel kernels",
            num_threads=numba.config.NUMBA_NUM_THREADS
        )
    return infos


class StageRegistry:
    """Per-stage implementations for each backend plus the current selection."""

    def __init__(self):
        self.infos = _probe_backends()
        self.current = Backend.CPU
        self._stages: Dict[str, Dict[Backend, Callable]] = {name: {} for name in STAGES}

    def register(self, stage: str, backend: Backend, implementation: Callable):
        if stage not in self._stages:
            raise ValueError(f"Unknown stage '{stage}'")
        self._stages[stage][backend] = implementation

    def implemented_stages(self, backend: Backend) -> List[str]:
        return [name for name in STAGES if backend in self._stages[name]]

    def select(self, backend: Backend) -> bool:
        if not self.infos[backend].available:
            warnings.warn(f"Backend {backend.value} not available, keeping {self.current.value}")
            return False
        self.current = backend
        return True

    def resolve(self, stage: str, backend: Optional[Backend] = None) -> Callable:
        """Implementation of ``stage`` for ``backend`` (current if None).

        Raises:
            ValueError: If the stage is unknown or has no implementation at all
        """
        if stage not in self._stages:
            raise ValueError(f"Unknown stage '{stage}'")
        backend = backend or self.current
        impls = self._stages[stage]
        if backend in impls:
            return impls[backend]
        if Backend.CPU in impls:
            warnings.warn(f"No {backend.value} implementation for {stage}, using cpu")
            return impls[Backend.CPU]
        raise ValueError(f"Stage '{stage}' has no registered implementation")

    def print_info(self):
        """Print availability and stage coverage of each backend."""
        print("\nPIC Backend Information")
        print("=" * 60)
        for backend, info in self.infos.items():
            status = "✓" if info.available else "✗"
            done = self.implemented_stages(backend)
            print(f"{status} {backend.value:6s}: {info.description}")
            if info.available:
                print(f"           Threads: {info.num_threads}, stages: {len(done)}/{len(STAGES)}")
                missing = [name for name in STAGES if name not in done]
                if missing:
                    print(f"           Falls back to cpu for: {', '.join(missing)}")
        print(f"\nCurrent backend: {self.current.value}")
        print("=" * 60)


_registry = StageRegistry()


def set_backend(backend: str) -> bool:
    """Select the global backend ('cpu' or 'numba'); False if not possible."""
    try:
        backend_enum = Backend.parse(backend)
    except ValueError as e:
        warnings.warn(str(e))
        return False
    return _registry.select(backend_enum)


def get_backend() -> str:
    return _registry.current.value


def list_backends() -> Dict[str, bool]:
    """Availability of each backend by name."""
    return {b.value: info.available for b, info in _registry.infos.items()}


def implemented_stages(backend: str) -> List[str]:
    """Stages with a native implementation on ``backend``, in frame order."""
    return _registry.implemented_stages(Backend.parse(backend))


def auto_select_backend(n_elements: int) -> str:
    """Select numba for passes larger than NUMBA_MIN_ELEMENTS when available.

    Args:
        n_elements: Particles or cells in the largest pass
    """
    use_numba = _registry.infos[Backend.NUMBA].available and n_elements > NUMBA_MIN_ELEMENTS
    _registry.select(Backend.NUMBA if use_numba else Backend.CPU)
    return _registry.current.value


def print_backend_info():
    _registry.print_info()


def register_implementation(stage: str, backend: Backend, implementation: Callable):
    """Register a backend-specific implementation of a stage.

    Raises:
        ValueError: If ``stage`` is not one of STAGES
    """
    _registry.register(stage, backend, implementation)


def dispatch(stage: str, *args, backend: Optional[str] = None, **kwargs):
    """Run ``stage`` on ``backend`` (the global selection if None)."""
    backend_enum = Backend.parse(backend) if backend else None
    return _registry.resolve(stage, backend_enum)(*args, **kwargs)
