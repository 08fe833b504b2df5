"""
Configuration settings for the Sargassum Drift Visualization Engine.

This module contains default configuration parameters and settings
for the prediction data source, the density field, the impact zone,
risk statistics, animation and output formats.
"""

# Data source URLs
DATA_SOURCES = {
    'prediction': {
        'url': 'https://sargazoai-backend-production.up.railway.app/api/Coordinate/predict',
        'iterations': 15,
        'headers': {
            'ngrok-skip-browser-warning': 'true',
        },
        'timeout_seconds': 30,
        'static_file': None,  # Local JSON payload for offline runs
    }
}

# Density field parameters (biomass areas are in km^2, radii in meters)
DENSITY_FIELD_CONFIG = {
    # (upper bound exclusive, value); an area of exactly 0 uses the 'zero' entry
    'particle_counts': {
        'zero': 10,
        'thresholds': [(15, 80), (25, 150), (30, 220), (35, 300)],
        'max': 400,
    },
    'spread_radii_m': {
        'zero': 100,
        'thresholds': [(15, 2000), (25, 2800), (30, 3200), (35, 3600)],
        'max': 4000,
    },
    # (density upper bound exclusive, color), darkest last
    'palette': [(40, '#9B8F6B'), (60, '#7A6E4E'), (80, '#5C5039')],
    'palette_max': '#3E3526',
    'layers': 2,
    'layer_radius_shrink': 0.2,
    'micro_particle_probability': 0.3,
    'micro_particles_per_particle': 3,
    'meters_per_degree': 111000,
    'background_radius_factor': 0.9,
    'background_opacity': 0.2,
}

# Coastal impact zone drawn on the terminal sample
IMPACT_CONFIG = {
    'radius_multiplier': 10,
    'draw_site_markers': False,
    'arrow_size_deg': 0.015,
    'arrival_marker_radius_px': 20,
}

# Risk statistics
STATISTICS_CONFIG = {
    'nearby_radius_km': 100,
    'top_sites': 4,
    'share_falloff_km': 200,
    'high_risk_km': 30,
    'medium_risk_km': 60,
    'density_min': 30,
    'density_max': 95,
}

# Animation
ANIMATION_CONFIG = {
    'interval_seconds': 1.5,
}

# Map viewport
MAP_CONFIG = {
    'center': (20.8, -88.0),
    'zoom': 7,
    'fit_padding_px': 50,
}

# Output configuration
OUTPUT_CONFIG = {
    'default_format': 'geojson',
    'available_formats': ['geojson', 'json', 'csv'],
    'output_directory': './output',
}

# Flask API configuration
FLASK_CONFIG = {
    'host': '0.0.0.0',
    'port': 5000,
    'debug': False,
    'threaded': True,
}
