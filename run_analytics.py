"""Run balance simulations from command line"""
import os
import sys

import numpy as np

# Set matplotlib backend before pyplot is imported
import matplotlib
if '--show-charts' not in sys.argv:
    # Use non-GUI backend for headless operation
    matplotlib.use('Agg')
import matplotlib.pyplot as plt

from catalog import get_location
from engine import GameEngine
from game_config import configure_logging
from models import money
from rng import RandomProvider
from simulation import ScriptedTrader, SimulationSettings, compute_detailed_stats, run_one_game


def show_simulation_results(results, bins=50, save_path=None):
    """Score and event histograms for a batch of runs

    Args:
        results: List of simulation results
        bins: Number of histogram bins
        save_path: If provided, save to this path instead of showing
    """
    stats = compute_detailed_stats(results)
    if not stats:
        print("No results to display")
        return

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 5))
    fig.suptitle(f'Balance Simulation Results (n={stats["n"]})', fontsize=16, fontweight='bold')

    scores = [r['score'] for r in results]
    ax1.hist(scores, bins=bins, color='#4ECDC4', edgecolor='black', alpha=0.7)
    ax1.axvline(np.median(scores), color='red', linestyle='--', linewidth=2,
                label=f'Median: {np.median(scores):,.0f}')
    ax1.set_xlabel('Final score')
    ax1.set_ylabel('Frequency')
    ax1.set_title('Score Distribution')
    ax1.legend()
    ax1.grid(alpha=0.3)

    freqs = stats['event_frequencies']
    ax2.bar(list(freqs.keys()), list(freqs.values()), color='#FF6B6B', edgecolor='black')
    ax2.set_ylabel('Events per game')
    ax2.set_title('Event Frequencies')
    ax2.tick_params(axis='x', rotation=45)
    ax2.grid(alpha=0.3, axis='y')

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=120)
        print(f"Saved chart to {save_path}")
        plt.close(fig)
    else:
        plt.show()


def print_summary(stats):
    print(f"\n{'='*80}")
    print("SIMULATION RESULTS")
    print(f"{'='*80}")
    print(f"Total Runs: {stats['n']}")
    print(f"Positive Score Rate: {stats['win_rate']:.1f}%")

    s = stats['score_stats']
    print(f"\nScore Distribution:")
    print(f"  P5: {s['p5']:,.0f}")
    print(f"  P25: {s['p25']:,.0f}")
    print(f"  P50 (Median): {s['median']:,.0f}")
    print(f"  P75: {s['p75']:,.0f}")
    print(f"  P95: {s['p95']:,.0f}")
    print(f"  Mean: {s['mean']:,.0f}  Std: {s['std']:,.0f}")
    print(f"  Skew: {s['skew']:.2f}  Kurtosis: {s['kurtosis']:.2f}")

    print(f"\nOutcomes:")
    for outcome, count in sorted(stats['outcomes'].items(), key=lambda x: x[1], reverse=True):
        print(f"  {outcome}: {count} ({count / stats['n'] * 100:.1f}%)")

    print(f"\nEvents per game:")
    for name, freq in stats['event_frequencies'].items():
        print(f"  {name:15s}: {freq:.2f}")


def single_run(seed, settings):
    """Replay one game turn by turn, printing every event"""
    engine = GameEngine(rng=RandomProvider(seed), stocks_enabled=settings.stocks_enabled)
    state = engine.create_initial_state(hacking_enabled=settings.hacking_enabled)
    trader = ScriptedTrader(engine, settings, RandomProvider(seed + 1_000_003))

    print(f"\n{'='*80}")
    print(f"SINGLE RUN DEBUG DUMP (Seed: {seed})")
    print(f"{'='*80}\n")
    print(f"Start: {state.current_location.name}  score {money(engine.calculate_score(state))}")

    while not engine.is_game_over(state):
        trader.take_actions(state)
        destination = trader.choose_destination(state)
        fare = engine.travel_cost(state, destination)
        if state.cash < fare and state.bank > 0:
            engine.withdraw_bank(state, min(state.bank, fare - state.cash))
        if state.cash < fare:
            print("Stranded: cannot pay the fare")
            break
        state.cash -= fare
        events = engine.change_location(state, destination)

        print(f"\nDay {engine.constants.starting_time - state.time_left:2d} -> {destination.name}: "
              f"cash {money(state.cash)} bank {money(state.bank)} debt {money(state.debt)} health {state.health}")
        for event in events:
            print(f"  [{event.type.value}] {event.message}")

    print(f"\nFINAL SCORE: {money(engine.calculate_score(state))}")
    location = get_location(state.current_location.id) if state.current_location else None
    print(f"Ended at: {location.name if location else '-'}")


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Run Monte Carlo balance simulation with analytics')
    parser.add_argument('--sims', type=int, default=1000, help='Number of simulations (default: 1000)')
    parser.add_argument('--seed', type=int, default=123, help='Seed for single-run mode, first seed otherwise (default: 123)')
    parser.add_argument('--single-run', action='store_true', help='Run single game with a turn-by-turn dump')
    parser.add_argument('--no-hacking', action='store_true', help='Disable hacker events and the wangba bonus')
    parser.add_argument('--no-stocks', action='store_true', help='Disable the stock market')
    parser.add_argument('--show-charts', action='store_true', help='Show matplotlib charts (requires GUI)')
    parser.add_argument('--save-plots', action='store_true', help='Save plots to PNG files instead of displaying')
    parser.add_argument('--output-dir', type=str, default='output', help='Directory for saved plots (default: output)')
    parser.add_argument('--log-level', type=str, default='WARNING', help='Logging level (default: WARNING)')

    args = parser.parse_args()
    configure_logging(args.log_level)

    settings = SimulationSettings(
        hacking_enabled=not args.no_hacking,
        stocks_enabled=not args.no_stocks,
    )

    if args.single_run:
        single_run(args.seed, settings)
        sys.exit(0)

    if args.save_plots:
        os.makedirs(args.output_dir, exist_ok=True)
        print(f"Plots will be saved to: {os.path.abspath(args.output_dir)}")

    print(f"\nRunning {args.sims} simulations...")
    results = []
    for i in range(args.sims):
        if i % 100 == 0:
            print(f"Progress: {i}/{args.sims}")
        results.append(run_one_game(args.seed + i, settings=settings))

    stats = compute_detailed_stats(results)
    if not stats:
        print("No results")
        sys.exit(1)
    print_summary(stats)

    if args.show_charts or args.save_plots:
        if args.save_plots:
            save_path = os.path.join(args.output_dir, "simulation_results.png")
            print(f"\nGenerating chart...")
            show_simulation_results(results, save_path=save_path)
        else:
            show_simulation_results(results)
