"""
Keyword-selected slide templates.

Each ``SlideTemplate`` maps to one ``TemplateProfile`` holding everything the
slide generator needs for that kind of section: the keywords that select it,
the topic focus written into the prompt, and the material for a deterministic
fallback slide used when the LLM call fails or returns too little.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

from app.schemas.presentation import Chart, ChartPoint, ContentSlide, Metric, Table

MIN_BULLETS = 8
MIN_METRICS = 3


class SlideTemplate(str, Enum):
    EXECUTIVE_SUMMARY = "EXECUTIVE_SUMMARY"
    FINANCIAL_ANALYSIS = "FINANCIAL_ANALYSIS"
    OPERATIONAL_METRICS = "OPERATIONAL_METRICS"
    MARKET_ANALYSIS = "MARKET_ANALYSIS"
    RISK_MANAGEMENT = "RISK_MANAGEMENT"
    TECHNOLOGY_INNOVATION = "TECHNOLOGY_INNOVATION"
    SUSTAINABILITY = "SUSTAINABILITY"
    HUMAN_RESOURCES = "HUMAN_RESOURCES"


DEFAULT_TEMPLATE = SlideTemplate.OPERATIONAL_METRICS


def _vary(base: float, index: int) -> float:
    """Shift ``base`` by up to +/-5% depending on the slide index."""
    return round(base * (1 + (((index * 37) % 11) - 5) / 100), 1)


@lru_cache(maxsize=None)
def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    """Keywords match at the start of a word; short ones must be the whole word.

    ``"team"`` matches "Team" and "Teams" but not "Steam", ``"technolog"``
    matches "Technology" but ``"system"`` does not match "Ecosystem".
    """
    if len(keyword) <= 4:
        return re.compile(rf"\b{re.escape(keyword)}s?\b")
    return re.compile(rf"\b{re.escape(keyword)}")


# Appended in order, then cycled, when a caller asks for more bullets than a
# profile carries.
_EXTRA_BULLETS = (
    "Follow-up {n}: {topic_lower} owners report progress monthly against a {pct}% improvement goal",
    "Follow-up {n}: the {years}-year plan sets quarterly checkpoints for {topic_lower}",
    "Follow-up {n}: benchmark {topic_lower} against peers and close gaps wider than {pct}%",
    "Follow-up {n}: lessons learned on {topic_lower} are shared across sites each quarter",
)


@dataclass(frozen=True)
class MetricSeed:
    label: str
    base: float
    unit: str
    change: float
    target: float | None = None


@dataclass(frozen=True)
class TemplateProfile:
    template: SlideTemplate
    keywords: tuple[str, ...]
    focus: str
    bullets: tuple[str, ...]
    metrics: tuple[MetricSeed, ...]
    insights: tuple[str, ...]
    table_headers: tuple[str, ...] = ("Metric", "Current", "Previous", "Target")
    chart_type: str = "bar"
    chart_labels: tuple[str, ...] = ("Q1", "Q2", "Q3", "Q4")
    chart_base: tuple[float, ...] = (100.0, 108.0, 115.0, 121.0)

    def matches(self, title: str) -> bool:
        lowered = title.lower()
        return any(_keyword_pattern(keyword).search(lowered) for keyword in self.keywords)

    def fallback_slide(
        self,
        title: str,
        index: int,
        min_bullets: int = MIN_BULLETS,
        min_metrics: int = MIN_METRICS,
    ) -> ContentSlide:
        """Deterministic, structurally complete slide for ``title``.

        Numbers are shifted by ``index`` so consecutive fallback slides of the
        same template do not look identical.  The slide carries at least
        ``min_bullets`` bullets and ``min_metrics`` metrics.
        """
        topic = title.strip() or self.template.value.replace("_", " ").title()
        pct = 4 + (index * 3) % 9
        years = 2 + index % 3
        values = {"topic": topic, "topic_lower": topic.lower(), "pct": pct, "years": years}

        content = [pattern.format(**values) for pattern in self.bullets]
        for n in range(1, max(0, min_bullets - len(content)) + 1):
            pattern = _EXTRA_BULLETS[(n - 1) % len(_EXTRA_BULLETS)]
            content.append(pattern.format(n=n, **values))

        metrics = []
        for seed in self.metrics:
            value = _vary(seed.base, index)
            change = round(seed.change + (index % 4) * 0.5, 1)
            metrics.append(Metric(
                label=seed.label,
                value=f"{value:g}{seed.unit}",
                change=f"{change:+g}%",
                target=f"{seed.target:g}{seed.unit}" if seed.target is not None else None,
            ))
        for n in range(1, max(0, min_metrics - len(metrics)) + 1):
            metrics.append(Metric(
                label=f"{topic} Index {n}",
                value=f"{_vary(100, index + n):g}",
                change=f"{(index + n) % 5 + 1:+g}%",
            ))

        rows = []
        for seed in self.metrics:
            current = _vary(seed.base, index)
            previous = round(current / (1 + seed.change / 100), 1)
            target = seed.target if seed.target is not None else round(current * 1.05, 1)
            rows.append([seed.label, f"{current:g}{seed.unit}", f"{previous:g}{seed.unit}", f"{target:g}{seed.unit}"])
        table = Table(title=f"{topic} - Key Figures", headers=list(self.table_headers), rows=rows)

        chart = Chart(
            type=self.chart_type,
            title=f"{topic} Trend",
            data=[
                ChartPoint(label=label, value=_vary(base, index + i))
                for i, (label, base) in enumerate(zip(self.chart_labels, self.chart_base))
            ],
        )

        return ContentSlide(
            title=topic,
            content=content,
            metrics=metrics,
            key_insights=[insight.format(**values) for insight in self.insights],
            tables=[table],
            charts=[chart],
        )


# Order matters: the first profile whose keywords match wins.
TEMPLATE_PROFILES: dict[SlideTemplate, TemplateProfile] = {
    SlideTemplate.FINANCIAL_ANALYSIS: TemplateProfile(
        template=SlideTemplate.FINANCIAL_ANALYSIS,
        keywords=("financial", "finance", "revenue", "profit", "cost", "budget", "investment", "ebitda", "numbers", "capex"),
        focus="revenue, profitability, cost structure, cash flow and capital allocation, with year-on-year comparisons",
        bullets=(
            "{topic}: revenue grew {pct}% year-on-year on higher volumes and better realisation",
            "EBITDA margin expanded through tighter cost control and an improved product mix",
            "Operating costs per unit declined {pct}% following procurement renegotiations",
            "Working capital cycle shortened, releasing cash for planned capital expenditure",
            "Capital expenditure is phased over {years} years with milestone-based approvals",
            "Debt-to-equity remains conservative, preserving headroom for growth investments",
            "Dividend policy balances shareholder returns with reinvestment requirements",
            "Sensitivity analysis shows resilience to a 10% swing in input prices",
            "Quarterly reviews track budget variance and trigger corrective actions early",
        ),
        metrics=(
            MetricSeed("Total Revenue", 2000, " Cr", 8.1, 2200),
            MetricSeed("EBITDA", 640, " Cr", 15.3, 726),
            MetricSeed("Net Profit", 420, " Cr", 13.5, 483),
            MetricSeed("EBITDA Margin", 32, "%", 2.1, 33),
        ),
        insights=(
            "Margin expansion outpaced revenue growth, pointing to durable efficiency gains",
            "Capital discipline over the next {years} years underpins the growth plan",
            "Input price volatility is the main swing factor for profitability",
        ),
        table_headers=("Metric", "FY Current", "FY Previous", "Target"),
        chart_labels=("FY21", "FY22", "FY23", "FY24"),
        chart_base=(1500.0, 1680.0, 1850.0, 2000.0),
    ),
    SlideTemplate.SUSTAINABILITY: TemplateProfile(
        template=SlideTemplate.SUSTAINABILITY,
        keywords=("sustainab", "environment", "esg", "carbon", "emission", "green", "csr", "climate"),
        focus="environmental performance, emissions, resource efficiency, ESG commitments and community impact",
        bullets=(
            "{topic}: emissions intensity reduced {pct}% against the baseline year",
            "Water recycling and reuse programmes expanded across all major sites",
            "Land reclamation and afforestation progressing ahead of statutory commitments",
            "Renewable energy share in the power mix rising under a {years}-year plan",
            "Waste segregation and circular-economy initiatives lowered landfill volumes",
            "Community development programmes focus on health, education and livelihoods",
            "ESG disclosures aligned with recognised reporting frameworks",
            "Independent audits validate environmental data and management systems",
        ),
        metrics=(
            MetricSeed("Water Recycled", 78, "%", 5.0, 85),
            MetricSeed("Renewable Share", 24, "%", 6.0, 35),
            MetricSeed("Emission Intensity", 0.82, " tCO2e/t", -4.0, 0.75),
            MetricSeed("Area Reclaimed", 340, " ha", 9.0, 400),
        ),
        insights=(
            "Resource efficiency gains also reduce operating costs",
            "The {years}-year renewable roadmap is the largest lever on emissions",
            "Transparent ESG reporting strengthens stakeholder confidence",
        ),
        chart_type="line",
        chart_base=(0.95, 0.9, 0.86, 0.82),
    ),
    SlideTemplate.RISK_MANAGEMENT: TemplateProfile(
        template=SlideTemplate.RISK_MANAGEMENT,
        keywords=("risk", "safety", "compliance", "regulatory", "audit", "governance", "incident", "security"),
        focus="key risks, safety performance, regulatory compliance, controls and mitigation plans",
        bullets=(
            "{topic}: enterprise risk register reviewed quarterly by the risk committee",
            "Lost-time injury frequency improved {pct}% through targeted safety training",
            "Regulatory compliance score remains above statutory thresholds at all sites",
            "Critical controls verified through scheduled field audits and inspections",
            "Business continuity plans tested for the top operational disruption scenarios",
            "Commodity and currency exposures managed within approved hedging limits",
            "Contractor safety onboarding standardised across {years} operating regions",
            "Near-miss reporting culture strengthened with digital incident logging",
        ),
        metrics=(
            MetricSeed("Compliance Score", 96.5, "%", 1.2, 98),
            MetricSeed("LTIFR", 0.42, "", -12.0, 0.35),
            MetricSeed("Audits Completed", 48, "", 9.0, 52),
            MetricSeed("Open High Risks", 6, "", -25.0, 4),
        ),
        insights=(
            "Leading indicators such as near-miss reports are trending in the right direction",
            "Concentrated exposures remain in a small number of critical processes",
            "Sustained compliance depends on continued investment in controls",
        ),
        table_headers=("Area", "Current", "Previous", "Threshold"),
        chart_type="line",
        chart_labels=("Jan", "Feb", "Mar", "Apr", "May", "Jun"),
        chart_base=(2.0, 1.0, 1.0, 1.0, 0.5, 1.0),
    ),
    SlideTemplate.TECHNOLOGY_INNOVATION: TemplateProfile(
        template=SlideTemplate.TECHNOLOGY_INNOVATION,
        keywords=("technolog", "digital", "innovation", "automation", "software", "system", "analytics"),
        focus="digital transformation, automation, data and analytics, and technology-driven productivity",
        bullets=(
            "{topic}: digital fleet management now covers the majority of mobile equipment",
            "Real-time telemetry cut equipment idle time by {pct}%",
            "Customer order booking and invoicing moved to fully digital workflows",
            "Integrated control tower consolidates operational and financial dashboards",
            "Predictive maintenance pilots reduced unplanned downtime on critical assets",
            "Cybersecurity programme hardened networks and access management",
            "Data platform roadmap spans {years} years with phased capability releases",
            "Digital skills training extended to frontline supervisors and engineers",
        ),
        metrics=(
            MetricSeed("Digital Adoption", 73, "%", 8.0, 80),
            MetricSeed("Fleet Digitalised", 85, "%", 12.0, 100),
            MetricSeed("Idle Time Reduction", 14, "%", 4.0, 20),
            MetricSeed("Ticket Closure Rate", 85.6, "%", 3.0, 90),
        ),
        insights=(
            "Digitalisation benefits compound once data is shared across functions",
            "Change management is as important as the technology itself",
            "The next {years} years focus on scaling proven pilots",
        ),
        chart_base=(52.0, 60.0, 67.0, 73.0),
    ),
    SlideTemplate.HUMAN_RESOURCES: TemplateProfile(
        template=SlideTemplate.HUMAN_RESOURCES,
        keywords=("human resource", "people", "workforce", "talent", "employee", "training", "team", "culture"),
        focus="workforce composition, talent development, engagement, productivity and succession",
        bullets=(
            "{topic}: workforce productivity per employee up {pct}% year-on-year",
            "Structured training hours per employee increased across all grades",
            "Leadership pipeline strengthened with a {years}-year succession plan",
            "Employee engagement survey shows improvement in communication scores",
            "Attrition in critical roles held below the industry benchmark",
            "Diversity and inclusion targets embedded in hiring processes",
            "Performance management aligned to measurable operational outcomes",
            "Health and wellness programmes extended to contract workforce",
        ),
        metrics=(
            MetricSeed("Training Hours / Employee", 32, "", 10.0, 40),
            MetricSeed("Engagement Score", 74, "%", 3.0, 80),
            MetricSeed("Critical Role Attrition", 6.5, "%", -8.0, 5),
        ),
        insights=(
            "Capability building is the foundation for the digital agenda",
            "Succession depth in critical roles remains a watch item",
            "Engagement gains correlate with improved safety outcomes",
        ),
        chart_base=(24.0, 27.0, 30.0, 32.0),
    ),
    SlideTemplate.MARKET_ANALYSIS: TemplateProfile(
        template=SlideTemplate.MARKET_ANALYSIS,
        keywords=("market", "customer", "competit", "sales", "demand", "pricing", "industry", "benchmark"),
        focus="market size and trends, customer segments, competitive position, pricing and demand outlook",
        bullets=(
            "{topic}: addressable demand expected to grow {pct}% annually",
            "Market share held steady against larger regional competitors",
            "Customer base diversified across power, cement and chemical segments",
            "Pricing benchmarked against peers with quarterly review cycles",
            "Long-term supply agreements cover a rising share of volumes",
            "Customer satisfaction improved following digital service upgrades",
            "Export and adjacent-market opportunities assessed over {years} years",
            "Competitive advantage rooted in logistics proximity and quality consistency",
        ),
        metrics=(
            MetricSeed("Market Share", 18.5, "%", 1.5, 20),
            MetricSeed("Active Customers", 1982, "", 6.0, 2100),
            MetricSeed("Contracted Volume", 62, "%", 4.0, 70),
        ),
        insights=(
            "Demand growth is strongest in industrial segments",
            "Contracted volumes reduce exposure to spot price swings",
            "Service quality is a differentiator in a commoditised market",
        ),
        chart_type="pie",
        chart_labels=("Power", "Cement", "Chemicals", "Others"),
        chart_base=(40.0, 25.0, 20.0, 15.0),
    ),
    SlideTemplate.OPERATIONAL_METRICS: TemplateProfile(
        template=SlideTemplate.OPERATIONAL_METRICS,
        keywords=("operation", "production", "efficiency", "performance", "metrics", "capacity", "logistics", "output"),
        focus="production volumes, capacity utilisation, efficiency ratios, quality and delivery performance",
        bullets=(
            "{topic}: output increased {pct}% on improved equipment availability",
            "Capacity utilisation remains above the industry average",
            "Energy efficiency programmes lowered consumption per unit of output",
            "Logistics turnaround times shortened through dispatch scheduling",
            "Quality consistency maintained within customer specifications",
            "Maintenance backlog reduced through planned shutdown optimisation",
            "Operational KPIs reviewed weekly with site-level accountability",
            "Expansion projects sequenced over {years} years to de-risk ramp-up",
        ),
        metrics=(
            MetricSeed("Production", 15.8, " MT", 11.3, 17.5),
            MetricSeed("Equipment Utilisation", 87.5, "%", 3.0, 90),
            MetricSeed("Energy Efficiency", 85.2, "%", 2.0, 87),
            MetricSeed("On-time Dispatch", 92, "%", 1.5, 95),
        ),
        insights=(
            "Availability improvements are the main driver of higher output",
            "Efficiency gains are broad-based across sites",
            "Sequenced expansion keeps execution risk manageable",
        ),
        chart_labels=("Q1", "Q2", "Q3", "Q4"),
        chart_base=(3.8, 4.2, 4.5, 4.8),
    ),
    SlideTemplate.EXECUTIVE_SUMMARY: TemplateProfile(
        template=SlideTemplate.EXECUTIVE_SUMMARY,
        keywords=("executive", "summary", "overview", "introduction", "intro", "conclusion", "highlight", "agenda", "roadmap"),
        focus="headline results, strategic priorities, major achievements and the outlook for the next period",
        bullets=(
            "{topic}: headline performance ahead of plan with revenue up {pct}%",
            "Operational reliability improved across all major sites",
            "Strategic priorities focus on growth, efficiency and sustainability",
            "Digital initiatives are delivering measurable productivity gains",
            "Safety and compliance performance remain at the top of the agenda",
            "Balance sheet strength supports the {years}-year investment programme",
            "Stakeholder engagement deepened with customers and communities",
            "Outlook remains positive with clear milestones for the coming year",
        ),
        metrics=(
            MetricSeed("Revenue", 2000, " Cr", 8.1),
            MetricSeed("Production", 15.8, " MT", 11.3),
            MetricSeed("Compliance Score", 96.5, "%", 1.2),
        ),
        insights=(
            "Growth and efficiency gains were achieved together",
            "Execution of the {years}-year plan is on track",
            "Key risks are identified and actively managed",
        ),
    ),
}


def select_template(title: str) -> SlideTemplate:
    """Pick the template whose keywords appear in ``title`` (case-insensitive)."""
    for template, profile in TEMPLATE_PROFILES.items():
        if profile.matches(title):
            return template
    return DEFAULT_TEMPLATE


def get_profile(template: SlideTemplate) -> TemplateProfile:
    return TEMPLATE_PROFILES[template]
