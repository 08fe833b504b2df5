"""
Export module for the Sargassum Drift Visualization Engine.

This module handles formatting and exporting session results:
- Export to GeoJSON (rendered frame plus the sample points, for mapping)
- Export to JSON (trajectories, samples and statistics)
- Export to CSV (summary totals and the nearest coastal sites)
"""

import csv
import json
import logging
import os
from datetime import datetime
from typing import Dict, Any, List, Optional, Sequence

import geojson

from . import config
from .density import intensity_label
from .interfaces import dict_to_geojson_linestring, dict_to_geojson_point

logger = logging.getLogger(__name__)


class ResultExporter:
    """Class for exporting session results in various formats."""

    def __init__(self, output_dir: Optional[str] = None):
        """
        Initialize the result exporter.

        Args:
            output_dir: Directory to save output files
                If None, uses the default from config
        """
        if output_dir is None:
            self.output_dir = config.OUTPUT_CONFIG['output_directory']
        else:
            self.output_dir = output_dir

        os.makedirs(self.output_dir, exist_ok=True)

    def export_results(self,
                       results: Dict[str, Any],
                       format_type: str = 'all',
                       filename_base: Optional[str] = None) -> Dict[str, str]:
        """
        Export session results in the specified format.

        Args:
            results: Session results from SessionManager.results(), with keys
                'trajectories', 'samples', 'statistics' and optionally 'frame'
            format_type: Format to export ('geojson', 'json', 'csv', or 'all')
            filename_base: Base filename without extension
                If None, generates a timestamped filename

        Returns:
            Dictionary mapping format types to output filenames
        """
        if format_type not in config.OUTPUT_CONFIG['available_formats'] + ['all']:
            raise ValueError(f"Unsupported export format: {format_type}")

        if filename_base is None:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            filename_base = f"sargassum_drift_{timestamp}"

        output_files = {}

        if format_type in ['geojson', 'all']:
            output_files['geojson'] = self._export_geojson(results, f"{filename_base}.geojson")

        if format_type in ['json', 'all']:
            output_files['json'] = self._export_json(results, f"{filename_base}.json")

        if format_type in ['csv', 'all']:
            output_files['csv'] = self._export_csv(results, f"{filename_base}.csv")

        return output_files

    def export_frame_series(self, frames: Sequence[Dict[str, Any]],
                            filename_base: Optional[str] = None) -> List[str]:
        """
        Export one GeoJSON file per animation step.

        Args:
            frames: Feature collections, one per step, in step order
            filename_base: Base filename; the step number is appended

        Returns:
            Paths of the written files, in step order
        """
        if filename_base is None:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            filename_base = f"sargassum_frame_{timestamp}"

        paths = []
        for step, frame in enumerate(frames):
            output_path = os.path.join(self.output_dir, f"{filename_base}_step{step:03d}.geojson")
            self._write_geojson(geojson.FeatureCollection(frame.get('features', []),
                                                          properties=frame.get('properties', {})),
                                output_path)
            paths.append(output_path)

        logger.info(f"Exported {len(paths)} frames to {self.output_dir}")
        return paths

    def _export_geojson(self, results: Dict[str, Any], filename: str) -> str:
        """
        Export results as GeoJSON for mapping.

        The rendered frame, when present, is written as-is and followed by
        one LineString per trajectory and one Point per concentration sample.
        """
        frame = results.get('frame') or {}
        features = list(frame.get('features', []))

        for trajectory in results.get('trajectories', []):
            points = [(p['latitude'], p['longitude']) for p in trajectory.get('points', [])]
            if len(points) < 2:
                continue
            features.append(dict_to_geojson_linestring(points, {
                'type': 'trajectory',
                'location': trajectory.get('location'),
                'stroke': '#000000',
                'stroke-width': 3,
                'stroke-opacity': 0.3
            }))

        for step, sample in enumerate(results.get('samples', [])):
            features.append(dict_to_geojson_point(sample['latitude'], sample['longitude'], {
                'type': 'sample',
                'step': step,
                'area_km2': sample.get('area_km2', 0),
                'density': sample.get('density', 0),
                'intensity': intensity_label(sample.get('intensity')),
                'location': sample.get('location')
            }))

        properties = dict(frame.get('properties', {}))
        properties['statistics'] = results.get('statistics', {})
        properties['generated_at'] = datetime.now().isoformat()

        output_path = os.path.join(self.output_dir, filename)
        self._write_geojson(geojson.FeatureCollection(features, properties=properties), output_path)

        logger.info(f"Exported GeoJSON to {output_path}")
        return output_path

    def _write_geojson(self, collection: geojson.FeatureCollection, output_path: str) -> None:
        collection['features'] = [
            geojson.GeoJSON.to_instance(feature, strict=True) for feature in collection['features']
        ]
        if not collection.is_valid:
            logger.warning(f"GeoJSON output {output_path} has validation errors: {collection.errors()}")
        with open(output_path, 'w', encoding='utf-8') as f:
            geojson.dump(collection, f, indent=2)

    def _export_json(self, results: Dict[str, Any], filename: str) -> str:
        """
        Export raw results as JSON.

        Args:
            results: Session results
            filename: Output filename

        Returns:
            Full path to the output file
        """
        output_path = os.path.join(self.output_dir, filename)

        payload = {k: v for k, v in results.items() if k != 'frame'}
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2)

        logger.info(f"Exported JSON to {output_path}")
        return output_path

    def _export_csv(self, results: Dict[str, Any], filename: str) -> str:
        """
        Export summary statistics as CSV.

        Also writes the nearest coastal sites to a companion
        ``<name>_sites.csv`` file.

        Args:
            results: Session results
            filename: Output filename

        Returns:
            Full path to the summary file
        """
        statistics = results.get('statistics', {})
        summary = {
            'total_biomass_km2': statistics.get('total_biomass_km2', 0.0),
            'high_risk_site_count': statistics.get('high_risk_site_count', 0),
            'monitored_site_count': statistics.get('monitored_site_count', 0),
            'sample_count': len(results.get('samples', [])),
            'trajectory_count': len(results.get('trajectories', [])),
        }

        output_path = os.path.join(self.output_dir, filename)
        with open(output_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(['Statistic', 'Value', 'Unit'])
            for key, value in summary.items():
                writer.writerow([key, value, self._get_unit_for_statistic(key)])

        sites_path = os.path.join(self.output_dir, f"{os.path.splitext(filename)[0]}_sites.csv")
        self._export_sites_csv(statistics.get('top_affected_sites', []), sites_path)

        logger.info(f"Exported CSV to {output_path}")
        return output_path

    def _export_sites_csv(self, sites: Sequence[Dict[str, Any]], output_path: str) -> str:
        with open(output_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(['rank', 'name', 'region', 'distance_km', 'biomass_share_km2',
                             'density', 'risk_tier'])
            for rank, site in enumerate(sites, start=1):
                writer.writerow([
                    rank, site['name'], site['region'], round(site['distance_km'], 1),
                    site['biomass_share_km2'], site['density'], site['risk_tier']
                ])
        return output_path

    def _get_unit_for_statistic(self, stat_name: str) -> str:
        unit_map = {
            'total_biomass_km2': 'km²',
            'high_risk_site_count': 'sites',
            'monitored_site_count': 'sites',
            'sample_count': 'samples',
            'trajectory_count': 'trajectories',
        }
        return unit_map.get(stat_name, '')
