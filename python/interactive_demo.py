"""
Interactive patrol viewer.
Solve a city, then step the patrol along its route with keyboard commands.
"""

import logging
import sys

import readchar
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from ascii_render import render
from city_parser import parse_city_concise
from city_types import CityGrid, Position
from patrol import PatrolRoute, solve_city
from route_serializer import replay_moves


class PatrolViewer:
    """Step through a solved patrol one move at a time."""

    def __init__(self, grid: CityGrid, start: Position) -> None:
        self.grid = grid
        self.start = start
        self.route: PatrolRoute = solve_city(grid, start)
        self.replay = replay_moves(grid, start, self.route.moves)
        self.step = 0
        self.console = Console()
        self.status_message = "Ready"

    @property
    def position(self) -> Position:
        return self.replay.positions[self.step]

    @property
    def walked_cost(self) -> int:
        return sum(self.grid.cost(pos) for pos in self.replay.positions[1 : self.step + 1])

    def generate_display(self) -> Panel:
        """Generate the current display with city and status."""
        pos = self.position
        city_text = render(
            self.grid,
            self.start,
            self.route.graph,
            self.route.moves[: self.step],
            highlight_pos=pos,
        )

        status = Text()
        status.append("Position: ", style="bold")
        status.append(f"({pos.row}, {pos.col})\n")
        status.append("Step: ", style="bold")
        status.append(f"{self.step}/{len(self.route.moves)}")
        if self.step < len(self.route.moves):
            status.append(f"  next move {self.route.moves[self.step]}")
        status.append("\n")
        status.append("Cost: ", style="bold")
        status.append(f"walked {self.walked_cost}, tour {self.route.cost}\n\n")

        status.append(Text.from_ansi(city_text))
        status.append("\n\n")
        status.append("Keys:\n", style="bold cyan")
        status.append("  N / Space - Next move\n")
        status.append("  B - Previous move\n")
        status.append("  E - Jump to end\n")
        status.append("  R - Reset to start\n")
        status.append("  Q - Quit\n\n")

        status.append("─" * 40 + "\n", style="dim")
        status.append("Status: ", style="bold")
        status.append(self.status_message)

        return Panel(status, title="Patrol Route Viewer", border_style="green", width=80)

    def advance(self, count: int) -> None:
        """Move the patrol forwards (or backwards for negative count)."""
        target = min(max(self.step + count, 0), len(self.route.moves))
        if target == self.step:
            self.status_message = "At the end of the route" if count > 0 else "At the start"
            return
        self.step = target
        pos = self.position
        if pos in self.route.positions:
            self.status_message = f"✓ Intersection ({pos.row}, {pos.col})"
        else:
            self.status_message = f"Moved to ({pos.row}, {pos.col})"

    def run(self) -> None:
        """Run the viewer until the user quits."""
        with Live(self.generate_display(), console=self.console, refresh_per_second=4) as live:
            try:
                while True:
                    live.update(self.generate_display())

                    key = readchar.readkey()

                    if key.lower() == "q":
                        self.status_message = "Quitting..."
                        live.update(self.generate_display())
                        break
                    elif key.lower() == "r":
                        self.step = 0
                        self.status_message = "Back at the start"
                    elif key.lower() == "n" or key == " ":
                        self.advance(1)
                    elif key.lower() == "b":
                        self.advance(-1)
                    elif key.lower() == "e":
                        self.advance(len(self.route.moves))
                    else:
                        self.status_message = f"Unknown key: {repr(key)}"

            except KeyboardInterrupt:
                self.status_message = "Interrupted by user"
                live.update(self.generate_display())


LAYOUTS = dict(
    ring=("1111111|1#####1|1#####1|1111111|1#####1|1#####1|1111111", Position(0, 3)),
    lattice=("11111|1#1#1|11111|1#1#1|11111", Position(0, 1)),
    cross=("#1#|151|#1#", Position(0, 1)),
)


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "sublime":
        # Running from IDE - just render the solved route
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

        definition, start = LAYOUTS["lattice"]
        grid = parse_city_concise(definition)
        route = solve_city(grid, start)
        print(route.moves)
        print(render(grid, start, route.graph, route.moves))
    else:
        definition, start = LAYOUTS[sys.argv[1] if len(sys.argv) > 1 else "ring"]
        PatrolViewer(parse_city_concise(definition), start).run()
