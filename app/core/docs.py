"""
@file docs.py
@brief Documentation handler for the application root
@details
Serves a short HTML overview of the API. Interactive docs live at /api/docs.

@author RainSafe Project
@date 2026-10-19
@version 1.0
@license AGPL-3.0
"""


def get_root_documentation() -> str:
    """
    @brief Generate the HTML content for the root documentation page

    @details
    Describes what the service does, the data providers it relies on and
    the main endpoints.

    @return HTML string
    """
    html_content = """<!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>RainSafe API - Documentation</title>
        <style>
            * { margin: 0; padding: 0; box-sizing: border-box; }
            body {
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
                line-height: 1.6;
                color: #333;
                background: linear-gradient(135deg, #1e88e5 0%, #3949ab 100%);
                min-height: 100vh;
                padding: 20px;
            }
            .container {
                max-width: 900px;
                margin: 0 auto;
                background: white;
                border-radius: 12px;
                box-shadow: 0 20px 60px rgba(0, 0, 0, 0.3);
                overflow: hidden;
            }
            .header {
                background: linear-gradient(135deg, #1e88e5 0%, #3949ab 100%);
                color: white;
                padding: 40px;
                text-align: center;
            }
            .header h1 { font-size: 2.5em; margin-bottom: 10px; }
            .content { padding: 40px; }
            h2 { color: #1e88e5; margin-top: 30px; border-bottom: 2px solid #1e88e5; padding-bottom: 10px; }
            p { margin-bottom: 15px; color: #555; }
            .footer {
                background: #f9f9f9;
                padding: 20px;
                text-align: center;
                color: #999;
                font-size: 0.9em;
                border-top: 1px solid #eee;
            }
            .warning {
                background: #fff3cd; color: #856404; border: 1px solid #ffeaa7;
                padding: 15px; border-radius: 6px; margin: 20px 0;
            }
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header">
                <h1>🌧️ RainSafe API</h1>
                <p>Weather-aware route planning and crowd hazard reports</p>
            </div>

            <div class="content">
                <h2>📋 Overview</h2>
                <p>RainSafe ranks driving routes by the forecast weather you are expected to meet along the way, and lets drivers report and verify road hazards such as waterlogging, accidents and road blocks.</p>

                <div class="warning">
                    <strong>⚠️ Data Sources</strong><br>
                    <p style="margin-top: 10px; font-size: 0.95em;">
                    Routes come from OSRM, forecasts from Open-Meteo and place search from OpenStreetMap Nominatim. Forecasts are estimates; always follow local advisories.
                    </p>
                </div>

                <h2>🔌 API Access</h2>
                <ul>
                    <li><code>GET /geocode?q=...</code> - Resolve a place name</li>
                    <li><code>GET /geocode/suggest?q=...</code> - Autocomplete suggestions</li>
                    <li><code>POST /routes/safe</code> - Ranked, weather-analyzed routes</li>
                    <li><code>POST /hazards</code> - Report a hazard</li>
                    <li><code>POST /hazards/{id}/confirm</code>, <code>/reject</code> - Peer verification</li>
                    <li><code>GET /hazards/nearby</code> - Trusted hazards around a point</li>
                </ul>

                <h2>⚠️ Status & Maintenance</h2>
                <p>System health is monitored via <code>/health</code>, <code>/health/ready</code> and <code>/health/live</code>.</p>
            </div>

            <div class="footer">
                <p>RainSafe Navigator | Weather-Aware Routing</p>
            </div>
        </div>
    </body>
    </html>
    """
    return html_content
