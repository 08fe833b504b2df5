"""
Main orchestration module for the Sargassum Drift Visualization Engine.

This module provides the main entry point and orchestration for a session:
- Loads the drift prediction (trajectory first, then concentrations)
- Drives the animation controller onto a GeoJSON rendering surface
- Exports frames, samples and statistics
- Provides a simple CLI for rendering predictions offline
"""

import argparse
import logging
import os
import sys
from datetime import datetime
from typing import Dict, Any, List, Optional

import geojson

from . import config
from .animation import AnimationController
from .coastal_sites import CoastalSiteRegistry, get_registry
from .data_models import ConcentrationSample, DerivedStatistics, Trajectory
from .density import DensityFieldGenerator
from .export import ResultExporter
from .fetch_data import PredictionApiClient, SargassumService, StaticPredictionClient
from .interfaces import SchedulerInterface
from .render import GeoJSONSurface
from .validation import validate_json_file

logger = logging.getLogger(__name__)


class SessionManager:
    """Main class for orchestrating one visualization session."""

    def __init__(self,
                 service: Optional[SargassumService] = None,
                 seed: Optional[int] = None,
                 registry: Optional[CoastalSiteRegistry] = None,
                 scheduler: Optional[SchedulerInterface] = None):
        """
        Initialize the session manager.

        Args:
            service: Prediction service (default data source if None)
            seed: Seed for the density field generator
            registry: Coastal site registry (shared default if None)
            scheduler: Timer used by the play loop
        """
        self.service = service or SargassumService()
        self.registry = registry if registry is not None else get_registry()
        self.surface = GeoJSONSurface()
        self.controller = AnimationController(
            self.surface,
            registry=self.registry,
            scheduler=scheduler,
            generator=DensityFieldGenerator(seed)
        )

        self.trajectories: List[Trajectory] = []
        self.samples: List[ConcentrationSample] = []
        self.session_state = {
            'status': 'initialized',
            'loaded_at': None,
            'used_fallback': False,
            'error': None
        }

    @property
    def statistics(self) -> DerivedStatistics:
        return self.controller.statistics

    def load(self) -> bool:
        """
        Load the prediction and hand it to the animation controller.

        Returns:
            True if the controller accepted the data
        """
        self.session_state['status'] = 'loading'

        self.trajectories = self.service.get_trajectories()
        self.samples = self.service.get_concentration_points()

        self.session_state['error'] = self.service.last_error
        self.session_state['used_fallback'] = self.service.last_error is not None

        loaded = self.controller.load(self.trajectories, self.samples)
        if loaded:
            self.session_state['status'] = 'loaded'
            self.session_state['loaded_at'] = datetime.now().isoformat()
            logger.info(
                f"Session loaded: {len(self.samples)} samples, "
                f"{self.statistics.total_biomass_km2:.0f} km2 total biomass"
            )
        else:
            self.session_state['status'] = 'closed'
        return loaded

    def reload(self) -> bool:
        """Drop the cached prediction and load it again."""
        self.service.reset()
        return self.load()

    def render_frame(self, step: Optional[int] = None, site: Optional[str] = None,
                     seed: Optional[int] = None) -> geojson.FeatureCollection:
        """
        Render one animation step as a GeoJSON feature collection.

        Args:
            step: Step to show (current step if None, clamped otherwise)
            site: Site filter ('' clears it, None keeps the current one)
            seed: Reseed the density field generator before drawing

        Returns:
            FeatureCollection of the drawn primitives
        """
        if site is not None and site != self.controller.site_filter:
            self.controller.set_site_filter(site)
        if step is not None:
            self.controller.go_to(step)
        if seed is not None or self.controller.last_frame is None:
            if seed is not None:
                self.controller.renderer.generator = DensityFieldGenerator(seed)
            self.controller.update_animation_step()

        frame = self.controller.last_frame
        return self.surface.to_feature_collection(
            step=self.controller.current_step,
            total_steps=self.controller.total_steps,
            site_filter=self.controller.site_filter,
            frame=frame.to_dict() if frame else None
        )

    def render_all_frames(self, site: Optional[str] = None) -> List[geojson.FeatureCollection]:
        """Render every step in order, returning one collection per step."""
        return [self.render_frame(step=step, site=site) for step in range(self.controller.total_steps)]

    def results(self, frame: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Collect the session results for export.

        Args:
            frame: Rendered frame to include

        Returns:
            Dictionary with trajectories, samples, statistics and session state
        """
        return {
            'trajectories': [t.to_dict() for t in self.trajectories],
            'samples': [s.to_dict() for s in self.samples],
            'statistics': self.statistics.to_dict(),
            'session': dict(self.session_state),
            'frame': frame
        }

    def export(self, output_formats: Optional[List[str]] = None,
               output_directory: Optional[str] = None,
               filename_base: Optional[str] = None,
               step: Optional[int] = None,
               site: Optional[str] = None,
               all_steps: bool = False) -> Dict[str, Any]:
        """
        Render and export the session.

        Args:
            output_formats: Formats to write (all available if None)
            output_directory: Directory to save output files
            filename_base: Base filename without extension
            step: Step to export (terminal step if None)
            site: Site filter
            all_steps: Also write one GeoJSON file per step

        Returns:
            Dictionary mapping output kinds to file paths
        """
        if output_formats is None:
            output_formats = list(config.OUTPUT_CONFIG['available_formats'])
        if filename_base is None:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            filename_base = f"sargassum_drift_{timestamp}"
        if step is None:
            step = max(self.controller.total_steps - 1, 0)

        exporter = ResultExporter(output_directory)
        output_files: Dict[str, Any] = {}

        if all_steps:
            frames = self.render_all_frames(site=site)
            output_files['frames'] = exporter.export_frame_series(frames, filename_base)

        frame = self.render_frame(step=step, site=site)
        results = self.results(frame)
        for format_type in output_formats:
            output_files.update(exporter.export_results(results, format_type, filename_base))

        return output_files

    def close(self) -> None:
        """Stop the animation and ignore any later data."""
        self.controller.teardown()
        self.session_state['status'] = 'closed'


def build_service(source: str, input_file: Optional[str] = None) -> SargassumService:
    """
    Create the prediction service for a data source.

    Args:
        source: 'api' or 'file'
        input_file: Prediction JSON file, required for 'file'

    Returns:
        SargassumService reading from the selected source
    """
    if source == 'file':
        if not input_file:
            raise ValueError("An input file is required when the source is 'file'")
        is_valid, errors = validate_json_file(input_file)
        if not is_valid:
            for error in errors:
                logger.warning(f"{input_file}: {error}")
        return SargassumService(StaticPredictionClient(input_file))
    if source == 'api':
        return SargassumService(PredictionApiClient())
    raise ValueError(f"Unknown data source: {source}")


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Sargassum Drift Visualization Engine',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    source_group = parser.add_argument_group('Data Source')
    source_group.add_argument('--source', type=str, default='api', choices=['api', 'file'],
                              help='Where to read the prediction from')
    source_group.add_argument('--input', type=str,
                              help='Prediction JSON file (with --source file)')

    render_group = parser.add_argument_group('Rendering Options')
    render_group.add_argument('--step', type=int,
                              help='Step to render (defaults to the terminal step)')
    render_group.add_argument('--site', type=str, default='',
                              help='Site filter: site tag or coastal zone slug')
    render_group.add_argument('--seed', type=int,
                              help='Seed for the density field generator')
    render_group.add_argument('--all-steps', action='store_true',
                              help='Also export one GeoJSON frame per step')

    output_group = parser.add_argument_group('Output Options')
    output_group.add_argument('--output-formats', type=str, nargs='+',
                              choices=config.OUTPUT_CONFIG['available_formats'],
                              default=config.OUTPUT_CONFIG['available_formats'],
                              help='Output formats')
    output_group.add_argument('--output-dir', type=str,
                              default=config.OUTPUT_CONFIG['output_directory'],
                              help='Output directory')
    output_group.add_argument('--output-prefix', type=str,
                              help='Prefix for output filenames')

    logging_group = parser.add_argument_group('Logging Options')
    logging_group.add_argument('--verbose', action='store_true',
                               help='Enable verbose logging')
    logging_group.add_argument('--quiet', action='store_true',
                               help='Suppress all output except errors')
    logging_group.add_argument('--log-file', type=str,
                               help='Log file path')

    args = parser.parse_args(argv)
    if args.source == 'file' and not args.input:
        parser.error('--input is required with --source file')
    return args


def configure_logging(verbose: bool = False, quiet: bool = False,
                      log_file: Optional[str] = None) -> None:
    """Set up root logging for the command line interface."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    if quiet:
        logging.getLogger().setLevel(logging.ERROR)
    elif verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        logging.getLogger().addHandler(file_handler)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command line interface."""
    args = parse_arguments(argv)
    configure_logging(args.verbose, args.quiet, args.log_file)

    try:
        service = build_service(args.source, args.input)
        manager = SessionManager(service=service, seed=args.seed)
        manager.load()

        filename_base = None
        if args.output_prefix:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            filename_base = f"{args.output_prefix}_{timestamp}"

        output_files = manager.export(
            output_formats=args.output_formats,
            output_directory=args.output_dir,
            filename_base=filename_base,
            step=args.step,
            site=args.site,
            all_steps=args.all_steps
        )
        manager.close()

        if not args.quiet:
            statistics = manager.statistics
            print("\nSargassum drift rendered successfully!")
            if manager.session_state['used_fallback']:
                print(f"Prediction unavailable ({manager.session_state['error']}), fallback data used")
            print(f"Total biomass: {statistics.total_biomass_km2:.0f} km²")
            print(f"Sites within {config.STATISTICS_CONFIG['nearby_radius_km']} km: "
                  f"{statistics.high_risk_site_count}/{statistics.monitored_site_count}")
            for site in statistics.top_affected_sites:
                print(f"  {site.name}, {site.region}: {site.distance_km:.1f} km ({site.risk_tier})")
            print("Output files:")
            for format_type, filepath in output_files.items():
                if isinstance(filepath, list):
                    print(f"  {format_type}: {len(filepath)} files in {os.path.abspath(args.output_dir)}")
                else:
                    print(f"  {format_type}: {filepath}")

        return 0

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 1

    except (OSError, ValueError) as e:
        logger.error(f"Error: {e}")
        if args.verbose:
            logger.exception("Details")
        return 1


if __name__ == '__main__':
    sys.exit(main())
