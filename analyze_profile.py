#!/usr/bin/env python3
"""
Profile Analyzer - Command Line Interface
"""

import json
import sys
from profile_analyzer import ProfileAnalyzer, ProfileConfig, ProfilerAnalysisError
from profile_analyzer.core import PROFILE_KINDS
from profile_analyzer.core.types import ROOT_MODES
from profile_analyzer.web import prepare_results


def main():
    import argparse
    parser = argparse.ArgumentParser(
        description='Analyze speedscope exports and runtime trace event dumps into call trees.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python analyze_profile.py profile.speedscope.json
  python analyze_profile.py cpu_events.json --kind cpu --self-time
  python analyze_profile.py alloc_events.json --kind allocation -o allocations.json
  python analyze_profile.py cpu_events.json --kind cpu --root Parser --root-mode shallowest
        """
    )
    parser.add_argument('input_file', help='Path to the profile JSON file')
    parser.add_argument('-o', '--output', dest='output_file', default='profile_analysis.json', help='Output JSON file')
    parser.add_argument('--kind', choices=PROFILE_KINDS, default='speedscope',
                       help='Input profile kind (default: speedscope)')
    parser.add_argument('--include-runtime', action='store_true',
                       help='Show runtime frames (threads, processes, unmanaged code) in call trees')
    parser.add_argument('--self-time', action='store_true', help='Rank call tree children by self time')
    parser.add_argument('--max-depth', type=int, default=30, help='Maximum call tree depth (default: 30)')
    parser.add_argument('--max-width', type=int, default=4, help='Maximum children per node (default: 4)')
    parser.add_argument('--sibling-cutoff', type=float, default=5,
                       help='Hide siblings below this percent of the hottest sibling (default: 5)')
    parser.add_argument('--hot-threshold', type=float, default=0.4,
                       help='Hotness (0-1) at which a node is a hotspot (default: 0.4)')
    parser.add_argument('--root', dest='root_filter', help='Re-root call trees at a function matching this text')
    parser.add_argument('--root-mode', choices=ROOT_MODES, default='hottest',
                       help='Which match to re-root at (default: hottest)')
    args = parser.parse_args()

    try:
        config = ProfileConfig(
            include_runtime=args.include_runtime,
            use_self_time=args.self_time,
            max_depth=args.max_depth,
            max_width=args.max_width,
            sibling_cutoff_percent=args.sibling_cutoff,
            hot_threshold=args.hot_threshold,
            root_filter=args.root_filter,
            root_mode=args.root_mode
        )
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(2)

    analyzer = ProfileAnalyzer(config)

    try:
        print(f"\nConfiguration:")
        print(f"  Input file: {args.input_file}")
        print(f"  Kind: {args.kind}")
        print(f"  Include runtime frames: {args.include_runtime}")
        print(f"  Rank by self time: {args.self_time}")
        print(f"  Max width: {args.max_width}, sibling cutoff: {args.sibling_cutoff}%\n")
        result = analyzer.analyze(args.input_file, args.kind)

        if result is None:
            print("Error: No usable profile data found.")
            sys.exit(1)
        if not result:
            print(f"Error: {result.reason}")
            sys.exit(1)

        with open(args.output_file, 'w', encoding='utf-8') as f:
            json.dump(prepare_results(result, config), f, indent=2)
        print(f"\n✓ Analysis complete! Results written to {args.output_file}")
    except FileNotFoundError:
        print(f"Error: File '{args.input_file}' not found.")
        sys.exit(1)
    except ProfilerAnalysisError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
