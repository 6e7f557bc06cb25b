"""
HTML renderer for the dashboard using Jinja2 templates.

Renders a Dashboard object to a complete HTML document with:
- One panel per chart with title, captions and key metrics
- Embedded chart specs as JSON
- D3 script inclusion and the chart renderers
"""

import json
import logging
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from src.dashboard.base import Dashboard, DashboardConfig, DashboardSection

logger = logging.getLogger(__name__)


# =============================================================================
# TEMPLATE LOADING
# =============================================================================


def get_template_env(template_dir: Path | None = None) -> Environment:
    """Get Jinja2 environment with the dashboard filters.

    Args:
        template_dir: Optional custom template directory

    Returns:
        Jinja2 Environment configured for dashboard templates
    """
    loader = FileSystemLoader(str(template_dir)) if template_dir and template_dir.exists() else None

    env = Environment(
        loader=loader,
        autoescape=select_autoescape(["html", "xml"], default_for_string=True),
        trim_blocks=True,
        lstrip_blocks=True,
    )

    env.filters["tojson"] = to_script_json
    env.filters["format_number"] = _format_number
    env.filters["format_percent"] = _format_percent

    return env


def to_script_json(value: Any) -> str:
    """Serialize to JSON that is safe to embed in a <script> block.

    Output is compact, with no indentation or spaces after separators. NaN is
    emitted as the JavaScript NaN literal so undefined values reach D3 unchanged.
    """
    return json.dumps(value, default=str, separators=(",", ":")).replace("</", "<\\/")


def _format_number(value: float | int, decimals: int = 0) -> str:
    """Format number with thousand separators."""
    if isinstance(value, int) or decimals == 0:
        return f"{int(value):,}"
    return f"{value:,.{decimals}f}"


def _format_percent(value: float, decimals: int = 1) -> str:
    """Format as percentage."""
    return f"{value * 100:.{decimals}f}%"


# =============================================================================
# HTML RENDERING
# =============================================================================


def render_dashboard_html(
    dashboard: Dashboard,
    config: DashboardConfig | None = None,
) -> str:
    """Render a dashboard to complete HTML.

    Args:
        dashboard: The Dashboard object to render
        config: Optional dashboard configuration

    Returns:
        Complete HTML document as string
    """
    config = config or DashboardConfig()

    context = {
        "dashboard": dashboard,
        "config": config,
        "section_fragments": [render_section_html(s, config) for s in dashboard.sections],
        "toc": dashboard.toc_entries,
        "d3_url": f"{config.cdn_base}/d3@7/dist/d3.min.js",
        "chart_data": dashboard.chart_specs(),
        "dashboard_css": _get_dashboard_css(),
        "dashboard_js": _get_dashboard_js(),
    }

    env = get_template_env()
    template = env.from_string(_get_main_template())

    html = template.render(**context)
    logger.debug(f"Rendered dashboard with {len(dashboard.sections)} charts ({len(html):,} bytes)")
    return html


def render_section_html(section: DashboardSection, config: DashboardConfig | None = None) -> str:
    """Render a single chart panel to an HTML fragment.

    Args:
        section: The section to render
        config: Optional dashboard configuration

    Returns:
        Section HTML fragment
    """
    env = get_template_env()
    template = env.from_string(_get_section_template())

    return template.render(section=section, config=config or DashboardConfig())


# =============================================================================
# INLINE TEMPLATES
# =============================================================================


def _get_section_template() -> str:
    """Get the chart panel template."""
    return '''<section id="{{ section.section_id }}" class="chart-section">
    <h2>{{ section.title }}</h2>
    <div class="chart-container" id="chart-{{ section.chart.chart_id }}">
        <!-- D3 chart renders here -->
    </div>
    {% for note in section.chart.annotations if note.type == 'note' %}
    <p class="chart-note">{{ note.text }}</p>
    {% endfor %}
    {% if config.show_captions %}
    <div class="captions">
        <p class="insight">{{ section.narrative.insight }}</p>
        <p class="callout">{{ section.narrative.callout }}</p>
    </div>
    {% endif %}
    {% if config.show_metrics and section.key_metrics %}
    <table class="metrics-table">
        {% for key, value in section.key_metrics.items() %}
        <tr>
            <td>{{ key }}</td>
            <td>{{ value }}</td>
        </tr>
        {% endfor %}
    </table>
    {% endif %}
</section>'''


def _get_main_template() -> str:
    """Get the main dashboard HTML template."""
    return '''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ config.title }}</title>

    <style>
{{ dashboard_css | safe }}
    </style>
</head>
<body>
    <header class="dashboard-header">
        <h1>{{ config.title }}</h1>
        <p class="subtitle">{{ config.subtitle }}</p>
        <div class="metadata">
            <span>{{ dashboard.record_count | format_number }} rows</span>
            <span class="separator">|</span>
            <span>{{ dashboard.country_count | format_number }} countries</span>
            {% if dashboard.year_range %}
            <span class="separator">|</span>
            <span>{{ dashboard.year_range[0] }}&ndash;{{ dashboard.year_range[1] }}</span>
            {% endif %}
            <span class="separator">|</span>
            <span>Generated {{ dashboard.generated_at.strftime('%B %d, %Y') }}</span>
        </div>
    </header>

    <nav class="toc">
        <ol>
            {% for entry in toc %}
            <li><a href="#{{ entry.id }}">{{ entry.title }}</a></li>
            {% endfor %}
        </ol>
    </nav>

    <main class="dashboard-content">
        {% for section_html in section_fragments %}
{{ section_html | safe }}
        {% endfor %}
    </main>

    <footer class="dashboard-footer">
        <p>Data: WHO LTBI household contact estimates</p>
    </footer>

    <script src="{{ d3_url }}"></script>

    <script>
        window.DASHBOARD_DATA = {{ chart_data | tojson | safe }};
    </script>

    <script>
{{ dashboard_js | safe }}
    </script>
</body>
</html>'''


def _get_dashboard_css() -> str:
    """Get embedded CSS for the dashboard."""
    return '''
body {
    margin: 0;
    font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Helvetica, Arial, sans-serif;
    color: #2d3748;
    background: #f7fafc;
}

.dashboard-header {
    padding: 2rem 3rem 1rem;
    background: #fff;
    border-bottom: 1px solid #e2e8f0;
}

.dashboard-header h1 {
    margin: 0 0 0.5rem;
}

.subtitle {
    margin: 0 0 1rem;
    color: #4a5568;
}

.metadata {
    font-size: 0.875rem;
    color: #718096;
}

.separator {
    margin: 0 0.5rem;
}

.toc {
    padding: 0.5rem 3rem;
    background: #fff;
    border-bottom: 1px solid #e2e8f0;
}

.toc ol {
    display: flex;
    flex-wrap: wrap;
    gap: 1.5rem;
    margin: 0;
    padding-left: 1rem;
}

.toc a {
    color: #2b6cb0;
    text-decoration: none;
}

.dashboard-content {
    padding: 1rem 3rem 3rem;
}

.chart-section {
    margin: 2rem 0;
    padding: 1.5rem;
    background: #fff;
    border: 1px solid #e2e8f0;
    border-radius: 8px;
}

.chart-container svg {
    max-width: 100%;
    height: auto;
}

.chart-note {
    font-size: 0.8rem;
    color: #a0aec0;
    font-style: italic;
}

.captions .insight {
    font-size: 1rem;
}

.captions .callout {
    font-size: 0.875rem;
    color: #718096;
}

.metrics-table {
    border-collapse: collapse;
    font-size: 0.875rem;
}

.metrics-table td {
    padding: 0.25rem 1rem 0.25rem 0;
    border-bottom: 1px solid #edf2f7;
}

.dashboard-footer {
    padding: 1rem 3rem;
    font-size: 0.75rem;
    color: #a0aec0;
}
'''


def _get_dashboard_js() -> str:
    """Get embedded JavaScript for the dashboard."""
    return '''
document.addEventListener('DOMContentLoaded', function() {
    initCharts();
});

// Chart initialization - dispatch to appropriate renderer
function initCharts() {
    if (!window.DASHBOARD_DATA) return;

    Object.keys(window.DASHBOARD_DATA).forEach(chartId => {
        const container = document.getElementById('chart-' + chartId);
        if (!container) return;

        const spec = window.DASHBOARD_DATA[chartId];

        switch (spec.chart_type) {
            case 'force_graph':
                renderForceGraph(container, spec);
                break;
            case 'choropleth':
                renderChoropleth(container, spec);
                break;
            case 'timeline':
                renderTimeline(container, spec);
                break;
            case 'treemap':
                renderTreemap(container, spec);
                break;
            case 'sunburst':
                renderSunburst(container, spec);
                break;
            default:
                console.warn('Unknown chart type: ' + spec.chart_type);
        }
    });
}

// =============================================================================
// HELPERS
// =============================================================================

function findInteraction(spec, eventName) {
    return (spec.interactions || []).find(i => i.event === eventName) || null;
}

function formatTemplate(template, values) {
    return (template || '').replace(/\\{(\\w+)\\}/g, (match, key) =>
        values[key] === undefined ? match : values[key]);
}

function createSvg(container, width, height) {
    return d3.select(container)
        .append('svg')
        .attr('width', width)
        .attr('height', height)
        .attr('viewBox', `0 0 ${width} ${height}`);
}

function buildHierarchy(rootData) {
    // Values are aggregated upstream; copy them instead of re-summing
    const root = d3.hierarchy(rootData, d => d.children);
    root.each(node => { node.value = node.data.value; });
    return root;
}

// =============================================================================
// CHART RENDERERS
// =============================================================================

function renderForceGraph(container, spec) {
    const cfg = spec.config || {};
    const width = cfg.width || 800;
    const height = cfg.height || 600;

    const svg = createSvg(container, width, height);

    // The simulation mutates its inputs, so work on copies
    const nodes = (spec.data.nodes || []).map(d => Object.assign({}, d));
    const links = (spec.data.links || []).map(d => Object.assign({}, d));
    if (!nodes.length) return;

    const center = cfg.center || [width / 2, height / 2];
    const simulation = d3.forceSimulation(nodes)
        .force('link', d3.forceLink(links).distance(cfg.linkDistance || 100).id(d => d.id))
        .force('charge', d3.forceManyBody().strength(cfg.chargeStrength ?? -50))
        .force('center', d3.forceCenter(center[0], center[1]));

    const link = svg.append('g')
        .selectAll('line')
        .data(links)
        .join('line')
        .style('stroke', cfg.linkColor || '#aaa');

    const node = svg.append('g')
        .selectAll('circle')
        .data(nodes)
        .join('circle')
        .attr('r', cfg.nodeRadius || 5)
        .style('fill', cfg.nodeColor || 'steelblue');

    const dragSpec = findInteraction(spec, 'drag');
    if (dragSpec) {
        node.call(dragBehavior(simulation, dragSpec.params || {}));
    }

    node.append('title').text(d => d.id);

    simulation.on('tick', () => {
        link.attr('x1', d => d.source.x)
            .attr('y1', d => d.source.y)
            .attr('x2', d => d.target.x)
            .attr('y2', d => d.target.y);

        node.attr('cx', d => d.x).attr('cy', d => d.y);
    });
}

function dragBehavior(simulation, params) {
    const alphaTarget = params.alphaTarget ?? 0.3;

    function dragstarted(event) {
        if (!event.active) simulation.alphaTarget(alphaTarget).restart();
        event.subject.fx = event.subject.x;
        event.subject.fy = event.subject.y;
    }

    function dragged(event) {
        event.subject.fx = event.x;
        event.subject.fy = event.y;
    }

    function dragended(event) {
        if (!event.active) simulation.alphaTarget(0);
        if (params.releaseOnEnd !== false) {
            event.subject.fx = null;
            event.subject.fy = null;
        }
    }

    return d3.drag().on('start', dragstarted).on('drag', dragged).on('end', dragended);
}

function renderChoropleth(container, spec) {
    const cfg = spec.config || {};
    const width = cfg.width || 960;
    const height = cfg.height || 500;
    const features = spec.data.features || [];
    const domain = spec.data.domain || [0, 0];

    const svg = createSvg(container, width, height);

    const interpolator = d3['interpolate' + (cfg.interpolator || 'Blues')] || d3.interpolateBlues;
    const colorScale = d3.scaleSequential(interpolator).domain(domain);

    const projection = d3.geoMercator()
        .scale(cfg.projectionScale || 130)
        .translate(cfg.translate || [width / 2, height / 1.4]);

    const path = d3.geoPath().projection(projection);

    const g = svg.append('g');

    const zoomSpec = findInteraction(spec, 'zoom');
    const clickSpec = findInteraction(spec, 'click');
    const scaleExtent = (zoomSpec && zoomSpec.params.scaleExtent) || [1, 8];

    const zoom = d3.zoom()
        .scaleExtent(scaleExtent)
        .on('zoom', event => {
            g.attr('transform', event.transform);
        });

    g.selectAll('path')
        .data(features)
        .join('path')
        .attr('class', 'country')
        .attr('d', path)
        .attr('fill', d => colorScale(d.properties.contacts))
        .attr('stroke', cfg.stroke || 'white')
        .attr('stroke-width', cfg.strokeWidth ?? 0.5)
        .on('click', clicked)
        .append('title')
        .text(d => formatTemplate(cfg.tooltip || '{name}: {contacts}', {
            name: d.properties.name,
            contacts: d.properties.contacts,
        }));

    if (zoomSpec) {
        svg.call(zoom);
    }

    function clicked(event, d) {
        if (!clickSpec) return;
        const params = clickSpec.params || {};
        const [minScale, maxScale] = params.scaleExtent || scaleExtent;
        const [[x0, y0], [x1, y1]] = path.bounds(d);

        const scale = Math.max(minScale, Math.min(maxScale,
            (params.fit || 0.9) / Math.max((x1 - x0) / width, (y1 - y0) / height)));
        const translate = [
            width / 2 - scale * (x0 + x1) / 2,
            height / 2 - scale * (y0 + y1) / 2,
        ];

        svg.transition()
            .duration(params.duration || 750)
            .call(zoom.transform, d3.zoomIdentity.translate(translate[0], translate[1]).scale(scale));
    }

    // Legend
    const legendWidth = cfg.legendWidth || 200;
    const swatch = cfg.legendSwatch || 20;
    const legend = svg.append('g').attr('transform', `translate(${width - legendWidth}, 20)`);

    const legendScale = d3.scaleLinear()
        .domain(domain)
        .range([0, legendWidth]);

    legend.selectAll('rect')
        .data(spec.data.legend || [])
        .join('rect')
        .attr('x', 0)
        .attr('y', d => d.index * swatch)
        .attr('width', swatch)
        .attr('height', swatch)
        .attr('fill', d => colorScale(d.value));

    legend.append('g')
        .attr('transform', `translate(${swatch + 5}, 0)`)
        .call(d3.axisRight(legendScale)
            .ticks(cfg.legendTicks || 5)
            .tickFormat(d3.format(cfg.legendTickFormat || '.0s')));

    legend.append('text')
        .attr('x', 0)
        .attr('y', -10)
        .text(cfg.legendLabel || 'Contacts');
}

function renderTimeline(container, spec) {
    const cfg = spec.config || {};
    const width = cfg.width || 800;
    const height = cfg.height || 300;
    const margin = cfg.margin || {top: 20, right: 30, bottom: 30, left: 50};
    const series = spec.data.series || [];

    const svg = createSvg(container, width, height);

    const xDomain = (cfg.xDomain && cfg.xDomain.length === 2) ? cfg.xDomain : [0, 1];
    const xScale = d3.scaleLinear()
        .domain(xDomain)
        .range([margin.left, width - margin.right]);

    const yScale = d3.scaleLinear()
        .domain(cfg.yDomain || [0, 1])
        .range([height - margin.bottom, margin.top]);

    const line = d3.line()
        .defined(d => Number.isFinite(d.contacts))
        .x(d => xScale(d.year))
        .y(d => yScale(d.contacts));

    svg.append('g')
        .attr('transform', `translate(0, ${height - margin.bottom})`)
        .call(d3.axisBottom(xScale).tickFormat(d3.format('d')));
    svg.append('g')
        .attr('transform', `translate(${margin.left}, 0)`)
        .call(d3.axisLeft(yScale).tickFormat(d3.format('.2s')));

    for (const entry of series) {
        svg.append('path')
            .datum(entry.points)
            .attr('fill', 'none')
            .attr('stroke', cfg.stroke || 'steelblue')
            .attr('stroke-width', cfg.strokeWidth || 1.5)
            .attr('d', line)
            .append('title')
            .text(entry.country);
    }
}

function renderTreemap(container, spec) {
    const cfg = spec.config || {};
    const width = cfg.width || 800;
    const height = cfg.height || 600;

    const svg = createSvg(container, width, height);

    const rootData = spec.data.root;
    if (!rootData || !(rootData.children || []).length) return;

    const root = buildHierarchy(rootData);
    d3.treemap().size([width, height]).padding(cfg.padding ?? 1)(root);

    const [labelX, labelY] = cfg.labelOffset || [3, 10];
    const labelField = cfg.labelField || 'country';

    const nodes = svg.selectAll('g')
        .data(root.leaves())
        .join('g')
        .attr('transform', d => `translate(${d.x0}, ${d.y0})`);

    nodes.append('rect')
        .attr('width', d => d.x1 - d.x0)
        .attr('height', d => d.y1 - d.y0)
        .attr('fill', cfg.fill || 'steelblue');

    nodes.append('title')
        .text(d => `${d.data[labelField]}: ${d.value}`);

    nodes.append('text')
        .attr('x', labelX)
        .attr('y', labelY)
        .text(d => d.data[labelField]);
}

function renderSunburst(container, spec) {
    const cfg = spec.config || {};
    const width = cfg.width || 800;
    const height = cfg.height || 600;
    const radius = cfg.radius || Math.min(width, height) / 2;

    const svg = createSvg(container, width, height)
        .append('g')
        .attr('transform', `translate(${width / 2}, ${height / 2})`);

    const rootData = spec.data.root;
    if (!rootData || !(rootData.children || []).length) return;

    const root = buildHierarchy(rootData);
    d3.partition().size([2 * Math.PI, radius])(root);

    const arc = d3.arc()
        .startAngle(d => d.x0)
        .endAngle(d => d.x1)
        .innerRadius(d => d.y0)
        .outerRadius(d => d.y1);

    const colors = d3.schemeCategory10;

    svg.selectAll('path')
        .data(root.descendants())
        .join('path')
        .attr('d', arc)
        .attr('fill', d => (d.depth === 0 ? 'none' : colors[d.depth % 10]))
        .attr('stroke', cfg.stroke || '#fff')
        .append('title')
        .text(d => {
            if (d.depth === 0) return cfg.rootLabel || 'Root';
            return formatTemplate(cfg.tooltip, {name: d.data.name, value: d.value});
        });

    const labelDepth = cfg.labelDepth || 1;

    svg.selectAll('text')
        .data(root.descendants().filter(d => d.depth === labelDepth))
        .join('text')
        .attr('transform', d => {
            const angle = (d.x0 + d.x1) / 2;
            const rotation = (angle * 180) / Math.PI - 90;
            return `translate(${arc.centroid(d)}) rotate(${rotation})`;
        })
        .attr('text-anchor', 'middle')
        .attr('alignment-baseline', 'middle')
        .text(d => d.data.name);
}
'''


# =============================================================================
# FILE OUTPUT
# =============================================================================


def save_dashboard_html(html: str, output_path: Path | str) -> None:
    """Save rendered HTML to file.

    Args:
        html: The rendered HTML string
        output_path: Path to write HTML file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(html)

    logger.info(f"Saved dashboard to {output_path}")
