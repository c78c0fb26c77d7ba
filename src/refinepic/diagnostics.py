"""
Diagnostic utilities for the buffer partition.

Tracks, per step and tile, how many particles deposit and gather on the
fine patch versus the buffers, with CSV export and plots.
"""

import csv
from typing import List, Optional

import numpy as np


class PartitionTracker:
    """
    Records partition counts over time.

    Usage:
        tracker = PartitionTracker()
        for step in range(n_steps):
            result = partition_particles_in_buffers(tile, lev, ...)
            tracker.record(step, lev, len(tile), result)
        tracker.save_csv('partition.csv')
        tracker.plot()
    """

    def __init__(self):
        self.step: List[int] = []
        self.level: List[int] = []
        self.n_particles: List[int] = []
        self.nfine_current: List[int] = []
        self.nfine_gather: List[int] = []
        self.reordered: List[bool] = []

    def record(self, step: int, level: int, n_particles: int, result):
        """
        Record one partition.

        Args:
            step: Simulation step
            level: Refinement level of the tile
            n_particles: Number of particles in the tile
            result: PartitionResult returned by the partition engine
        """
        self.step.append(int(step))
        self.level.append(int(level))
        self.n_particles.append(int(n_particles))
        self.nfine_current.append(int(result.nfine_current))
        self.nfine_gather.append(int(result.nfine_gather))
        self.reordered.append(bool(result.reordered))

    def __len__(self):
        return len(self.step)

    def buffer_fractions(self, level: Optional[int] = None):
        """
        Fraction of particles in the deposition and gather buffers per step.

        Tiles recorded at the same step (and level, if given) are summed.

        Returns:
            steps: Sorted step numbers
            current_fraction: Buffer fraction for deposition
            gather_fraction: Buffer fraction for gather
        """
        step = np.asarray(self.step, dtype=np.int64)
        n = np.asarray(self.n_particles, dtype=np.float64)
        n_cur = n - np.asarray(self.nfine_current, dtype=np.float64)
        n_gat = n - np.asarray(self.nfine_gather, dtype=np.float64)
        if level is not None:
            keep = np.asarray(self.level) == level
            step, n, n_cur, n_gat = step[keep], n[keep], n_cur[keep], n_gat[keep]

        steps, inverse = np.unique(step, return_inverse=True)
        total = np.bincount(inverse, weights=n, minlength=steps.size)
        cur = np.bincount(inverse, weights=n_cur, minlength=steps.size)
        gat = np.bincount(inverse, weights=n_gat, minlength=steps.size)

        with np.errstate(invalid='ignore', divide='ignore'):
            current_fraction = np.where(total > 0, cur / total, 0.0)
            gather_fraction = np.where(total > 0, gat / total, 0.0)
        return steps, current_fraction, gather_fraction

    def save_csv(self, filename: str):
        """
        Save recorded data to a CSV file.

        Args:
            filename: Output CSV filename
        """
        with open(filename, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow([
                'step', 'level', 'n_particles', 'nfine_current', 'nfine_gather', 'reordered'
            ])
            for row in zip(self.step, self.level, self.n_particles,
                           self.nfine_current, self.nfine_gather, self.reordered):
                writer.writerow(row)

        print(f"Partition diagnostics saved to {filename}")

    def plot(self, level: Optional[int] = None, show=True, save_filename=None):
        """
        Plot buffer fractions versus step.

        Args:
            level: Restrict to one refinement level
            show: Display plots interactively
            save_filename: Save figure to file (optional)
        """
        import matplotlib.pyplot as plt

        steps, cur, gat = self.buffer_fractions(level)

        fig, ax = plt.subplots(figsize=(8, 5))
        ax.plot(steps, cur, 'b-', linewidth=2, label='Deposition buffer')
        ax.plot(steps, gat, 'r--', linewidth=2, label='Gather buffer')
        ax.set_xlabel('Step', fontsize=12)
        ax.set_ylabel('Fraction of particles in buffer', fontsize=12)
        title = 'Buffer Occupancy' if level is None else f'Buffer Occupancy (level {level})'
        ax.set_title(title, fontsize=14, fontweight='bold')
        ax.set_ylim(0, 1)
        ax.legend(fontsize=10)
        ax.grid(True, alpha=0.3)

        plt.tight_layout()

        if save_filename:
            plt.savefig(save_filename, dpi=150, bbox_inches='tight')
            print(f"Plot saved to {save_filename}")

        if show:
            plt.show()

        return fig

    def summary(self):
        """Print summary statistics."""
        print("\n" + "=" * 60)
        print("PARTITION SUMMARY")
        print("=" * 60)
        if not self.step:
            print("  No partitions recorded")
            print("=" * 60 + "\n")
            return

        n_total = sum(self.n_particles)
        n_cur = n_total - sum(self.nfine_current)
        n_gat = n_total - sum(self.nfine_gather)
        print(f"  Partitions recorded:   {len(self.step):,}")
        print(f"  Tiles reordered:       {sum(self.reordered):,}")
        if n_total > 0:
            print(f"  Deposition buffer:     {n_cur / n_total:.2%}")
            print(f"  Gather buffer:         {n_gat / n_total:.2%}")
        print("=" * 60 + "\n")
