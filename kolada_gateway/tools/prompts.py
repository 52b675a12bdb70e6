"""Prompt templates: guided analysis workflows built from the gateway tools.

Each template renders into a single user message that walks an agent
through the tool calls for a common analysis task.

Example:
    prompt = get_prompt("trend_analysis", {"municipality": "Uppsala", "topic": "äldreomsorg"})
    text = prompt["messages"][0]["content"]["text"]
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Callable

from kolada_gateway.errors import InvalidInputError, NotFoundError
from kolada_gateway.monitoring import get_logger
from kolada_gateway.tools.ou_tools import OU_TYPES

log = get_logger(__name__)

Arguments = dict[str, str]


@dataclass(frozen=True)
class PromptArgument:
    name: str
    description: str
    required: bool = False


@dataclass(frozen=True)
class Prompt:
    name: str
    description: str
    render: Callable[[Arguments], str] = field(repr=False)
    arguments: tuple[PromptArgument, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "arguments": [asdict(argument) for argument in self.arguments],
        }


def _bullets(lines: list[str]) -> str:
    return "\n".join(f"- {line}" for line in lines)


def _analyze_municipality(args: Arguments) -> str:
    name = args["municipality_name"]
    focus = args.get("focus_areas")
    focus_line = f"Focus on: {focus}" if focus else "Comprehensive overview across all areas"
    kpi_step = (
        f'search_kpis with query="{focus}"'
        if focus
        else "get_municipality_kpis to see all available data"
    )
    return f"""Analyze key performance indicators for {name}.

**Analysis Focus:**
- {focus_line}

**Suggested Workflow:**
1. Search for the municipality: search_municipalities with query="{name}"
2. Get municipality details: get_municipality with the municipality_id
3. Find relevant KPIs: {kpi_step}
4. Retrieve data: get_kpi_data for selected KPIs
5. Analyze trends: get_kpi_trend for historical perspective

**Key Areas to Consider:**
- Education (Utbildning)
- Healthcare (Hälso- och sjukvård)
- Social Services (Socialtjänst)
- Infrastructure (Infrastruktur)
- Environment (Miljö)
- Economy (Ekonomi)

Provide insights on performance, trends, and comparisons to national averages.
"""


def _compare_municipalities(args: Arguments) -> str:
    names = [name.strip() for name in args["municipalities"].split(",") if name.strip()]
    topics = args["kpi_topics"]
    return f"""Compare multiple Swedish municipalities on selected key performance indicators.

**Municipalities to Compare:**
{_bullets(names)}

**Comparison Topics:**
{topics}

**Workflow:**
1. Search for each municipality: search_municipalities
2. Identify relevant KPIs: search_kpis with query="{topics}"
3. Compare data: compare_municipalities with the selected KPI ID and municipality IDs
4. Analyze differences and similarities

**Comparison Framework:**
- Identify performance gaps
- Highlight best practices
- Consider demographic and economic factors
- Look for actionable insights

Present findings in a structured format showing relative performance.
"""


def _trend_analysis(args: Arguments) -> str:
    municipality = args["municipality"]
    topic = args["topic"]
    years = args.get("years") or "5"
    return f"""Analyze trends over time for key performance indicators in {municipality}.

**Analysis Parameters:**
- Municipality: {municipality}
- Topic: {topic}
- Time Period: {years} years

**Workflow:**
1. Find municipality: search_municipalities with query="{municipality}"
2. Identify KPIs: search_kpis with query="{topic}"
3. Get trend data: get_kpi_trend with start_year and end_year
4. Analyze patterns

**What to Look For:**
- Upward or downward trends
- Sudden changes or anomalies
- Correlation with policy changes

Provide historical context and project future trajectories where appropriate.
"""


def _find_schools(args: Arguments) -> str:
    municipality = args["municipality"]
    parameters = [f"Municipality: {municipality}"]
    if args.get("school_type"):
        parameters.append(f"School Type: {args['school_type']}")
    if args.get("school_name"):
        parameters.append(f"School Name: {args['school_name']}")
    school_types = [f"{code}: {OU_TYPES[code]}" for code in ("V11", "V15", "V16")]
    return f"""Find and analyze schools in {municipality}.

**Search Parameters:**
{_bullets(parameters)}

**Workflow:**
1. Find municipality: search_municipalities
2. Search for schools: search_organizational_units with the municipality filter and an ou_type prefix
3. Get school details: get_organizational_unit for specific schools
4. Retrieve school data: get_kpi_data with ou_id for education KPIs

**Common School Types (ou_type):**
{_bullets(school_types)}

**Key Education KPIs to Consider:**
- Student-teacher ratio
- Pass rates
- Student satisfaction
- Resources per student

Provide a comprehensive overview of educational institutions and their performance.
"""


def _regional_comparison(args: Arguments) -> str:
    region = args["region"]
    return f"""Compare municipalities within the same region on key indicators.

**Region/Group:**
{region}

**Workflow:**
1. Find municipality groups: get_municipality_groups with query="{region}"
2. Get group members: get_municipality_group with group_id
3. Select relevant KPIs: search_kpis
4. Compare data: compare_municipalities with the member IDs (at most 10 per call)

**Regional Context:**
- Population size differences
- Economic base variations
- Urban vs rural characteristics
- Regional policies

Present findings highlighting regional patterns and outliers within the group.
"""


def _kpi_discovery(args: Arguments) -> str:
    criteria = []
    if args.get("operating_area"):
        criteria.append(f"Operating Area: {args['operating_area']}")
    if args.get("query"):
        criteria.append(f"Keywords: {args['query']}")
    return f"""Discover and explore available key performance indicators.

**Search Criteria:**
{_bullets(criteria) if criteria else "- Any"}

**Workflow:**
1. List operating areas: list_operating_areas, then get_kpis_by_operating_area
2. Browse KPI groups: get_kpi_groups to see thematic collections
3. Search KPIs: search_kpis with filters
4. Get KPI details: get_kpi for metadata and calculation methods
5. Check data availability: the has_ou_data field shows if organization-level data exists

Provide a summary of relevant KPIs with their descriptions and data availability.
"""


PROMPTS = {
    prompt.name: prompt
    for prompt in [
        Prompt(
            name="analyze_municipality",
            description="Analyze key metrics and performance for a Swedish municipality",
            render=_analyze_municipality,
            arguments=(
                PromptArgument(
                    "municipality_name",
                    'Name of the municipality to analyze (e.g., "Stockholm", "Göteborg")',
                    required=True,
                ),
                PromptArgument(
                    "focus_areas",
                    'Specific areas to focus on (e.g., "education", "healthcare", "environment")',
                ),
            ),
        ),
        Prompt(
            name="compare_municipalities",
            description="Compare multiple municipalities on selected key performance indicators",
            render=_compare_municipalities,
            arguments=(
                PromptArgument(
                    "municipalities",
                    "Comma-separated list of municipality names to compare",
                    required=True,
                ),
                PromptArgument(
                    "kpi_topics",
                    'Topics to compare (e.g., "schools", "healthcare quality")',
                    required=True,
                ),
            ),
        ),
        Prompt(
            name="trend_analysis",
            description="Analyze trends over time for specific performance indicators",
            render=_trend_analysis,
            arguments=(
                PromptArgument(
                    "municipality", "Municipality name to analyze trends for", required=True
                ),
                PromptArgument(
                    "topic",
                    'Topic area to analyze (e.g., "education quality", "elderly care")',
                    required=True,
                ),
                PromptArgument("years", "Number of years to analyze (default: 5)"),
            ),
        ),
        Prompt(
            name="find_schools",
            description="Find and analyze schools and educational institutions",
            render=_find_schools,
            arguments=(
                PromptArgument("municipality", "Municipality to search schools in", required=True),
                PromptArgument(
                    "school_type", 'Type of school (e.g., "grundskola", "gymnasium", "förskola")'
                ),
                PromptArgument("school_name", "Specific school name to search for"),
            ),
        ),
        Prompt(
            name="regional_comparison",
            description="Compare municipalities within the same region or group",
            render=_regional_comparison,
            arguments=(
                PromptArgument(
                    "region",
                    'Region name or municipality group (e.g., "Stockholm län", "Storstäder")',
                    required=True,
                ),
            ),
        ),
        Prompt(
            name="kpi_discovery",
            description="Discover and explore available key performance indicators",
            render=_kpi_discovery,
            arguments=(
                PromptArgument("query", "Search keywords for KPIs"),
                PromptArgument(
                    "operating_area",
                    'Operating area to filter by (e.g., "Utbildning", "Hälso- och sjukvård")',
                ),
            ),
        ),
    ]
}


def list_prompts() -> list[dict[str, Any]]:
    return [prompt.to_dict() for prompt in PROMPTS.values()]


def get_prompt(name: str, arguments: Arguments | None = None) -> dict[str, Any]:
    """Render a prompt as ``{"description", "messages": [{"role", "content"}]}``.

    Raises:
        NotFoundError: Unknown prompt name
        InvalidInputError: A required argument is missing or blank
    """
    log.info("prompt_requested", prompt=name)

    prompt = PROMPTS.get(name)
    if prompt is None:
        raise NotFoundError(
            f"Unknown prompt: {name}",
            suggestion=f"Available prompts: {', '.join(PROMPTS)}.",
        )

    args = {key: str(value) for key, value in (arguments or {}).items() if value is not None}
    missing = [a.name for a in prompt.arguments if a.required and not args.get(a.name, "").strip()]
    if missing:
        raise InvalidInputError(
            f"Prompt {name} is missing required arguments: {', '.join(missing)}",
            suggestion="Use list_prompts to see each prompt's arguments.",
            details={"missing": missing},
        )

    return {
        "description": prompt.description,
        "messages": [
            {"role": "user", "content": {"type": "text", "text": prompt.render(args)}}
        ],
    }
