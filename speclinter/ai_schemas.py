"""Response contracts for analysis performed by the IDE's model.

Every prepare tool names one of these models as the shape its follow-up
process tool expects. Payloads arrive camelCase; attributes are snake_case.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

Severity = Literal["low", "medium", "high", "critical"]
Effort = Literal["XS", "S", "M", "L", "XL"]
Grade = Literal["A+", "A", "B", "C", "D", "F"]
Level = Literal["low", "medium", "high"]
Compliance = Literal["follows", "partially_follows", "violates", "not_applicable"]


def _score(description: str = "") -> Any:
    return Field(ge=0, le=100, description=description)


def _confidence(description: str = "") -> Any:
    return Field(ge=0, le=1, description=description)


class AIModel(BaseModel):
    """Base for AI payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Codebase analysis
# ---------------------------------------------------------------------------


class AIPatternLocation(AIModel):
    file: str
    line_start: Optional[int] = None
    line_end: Optional[int] = None


class AICodePattern(AIModel):
    name: str
    description: str
    example: str
    confidence: float = _confidence("AI confidence in pattern detection")
    locations: List[AIPatternLocation]


class AITechStack(AIModel):
    frontend: Optional[str] = None
    backend: Optional[str] = None
    database: Optional[str] = None
    testing: Optional[str] = None
    build_tool: Optional[str] = None
    package_manager: Optional[str] = None
    language: Optional[str] = None
    confidence: float = _confidence("Overall confidence in tech stack detection")


class AINamingExample(AIModel):
    type: Literal["file", "variable", "function", "class", "constant"]
    example: str
    convention: str


class AINamingConventions(AIModel):
    file_naming: str
    variable_naming: str
    function_naming: str
    class_naming: Optional[str] = None
    constant_naming: Optional[str] = None
    examples: List[AINamingExample]


class AIProjectStructure(AIModel):
    src_dir: str
    test_dir: str
    config_files: List[str]
    entry_points: List[str]
    architecture: Literal["monolith", "microservices", "modular", "layered", "unknown"]
    organization_pattern: str


class AICodeQualityIssue(AIModel):
    type: str
    severity: Severity
    description: str
    file: Optional[str] = None
    suggestion: Optional[str] = None


class AICodeQuality(AIModel):
    overall_score: float = _score("Overall code quality score")
    maintainability: float = _score()
    test_coverage: Optional[float] = Field(default=None, ge=0, le=100)
    documentation: float = _score()
    issues: List[AICodeQualityIssue]


class AICodebaseAnalysis(AIModel):
    tech_stack: AITechStack
    error_patterns: List[AICodePattern]
    api_patterns: List[AICodePattern]
    test_patterns: List[AICodePattern]
    naming_conventions: AINamingConventions
    project_structure: AIProjectStructure
    code_quality: AICodeQuality
    insights: List[str]
    recommendations: List[str]


class AIContextFiles(AIModel):
    project_md: str
    patterns_md: str
    architecture_md: str


class AICodebaseAnalysisWithContext(AIModel):
    analysis: AICodebaseAnalysis
    context_files: AIContextFiles


# ---------------------------------------------------------------------------
# Spec analysis
# ---------------------------------------------------------------------------


class AISpecIssue(AIModel):
    type: str
    severity: Severity
    message: str
    suggestion: str
    points: float


class AISpecQuality(AIModel):
    score: float = _score("Overall spec quality score")
    grade: Grade
    issues: List[AISpecIssue]
    strengths: List[str]
    improvements: List[str]


class AITask(AIModel):
    title: str
    summary: str
    implementation: str
    acceptance_criteria: List[str]
    estimated_effort: Effort
    dependencies: List[str]
    testing_notes: str
    relevant_patterns: List[str]
    risk_factors: List[str]
    security_considerations: List[str]
    performance_considerations: List[str]
    user_experience: str
    technical_debt: List[str]


class AISpecScope(AIModel):
    in_scope: List[str]
    out_of_scope: List[str]
    assumptions: List[str]


class AISpecAnalysis(AIModel):
    quality: AISpecQuality
    tasks: List[AITask]
    technical_considerations: List[str]
    user_stories: List[str]
    business_value: str
    scope: AISpecScope


# ---------------------------------------------------------------------------
# Similarity
# ---------------------------------------------------------------------------


class AISimilarFeature(AIModel):
    feature_name: str
    similarity_score: float = _confidence("Semantic similarity score")
    similarity_reasons: List[str]
    differences: List[str]
    recommendation: Literal["merge", "separate", "refactor"]


class AISimilarityAnalysis(AIModel):
    similar_features: List[AISimilarFeature]
    overall_assessment: str
    confidence: float = _confidence()


# ---------------------------------------------------------------------------
# Implementation validation
# ---------------------------------------------------------------------------


class AIImplementationFile(AIModel):
    path: str
    type: Literal["source", "test", "config", "documentation"]
    relevance: float = _confidence("How relevant this file is to the feature")
    content: str
    patterns: List[str]
    functions: List[str]
    exports: List[str]


class AICriteriaValidation(AIModel):
    criteria: str
    status: Literal["met", "partially_met", "not_met", "unclear"]
    evidence: str
    confidence: float = _confidence()


class AIPatternComplianceCheck(AIModel):
    pattern: str
    compliance: Compliance
    examples: List[str]


class AICodeIssue(AIModel):
    type: Literal["error_handling", "validation", "security", "performance", "maintainability"]
    severity: Severity
    description: str
    location: str
    suggestion: str


class AITaskValidation(AIModel):
    task_id: str
    title: str
    implementation_status: Literal[
        "not_implemented", "partially_implemented", "fully_implemented", "over_implemented"
    ]
    quality_score: float = _score()
    implementation_files: List[str]
    acceptance_criteria_validation: List[AICriteriaValidation]
    pattern_compliance: List[AIPatternComplianceCheck]
    code_quality_issues: List[AICodeIssue]
    missing_components: List[str]
    recommendations: List[str]


class AIArchitecturalAlignment(AIModel):
    score: float = _score()
    strengths: List[str]
    concerns: List[str]
    recommendations: List[str]


class AITestCoverage(AIModel):
    has_tests: bool
    test_types: List[Literal["unit", "integration", "e2e", "manual"]]
    coverage: Optional[float] = Field(default=None, ge=0, le=100)
    test_quality: Literal["poor", "fair", "good", "excellent"]
    missing_tests: List[str]


class AISecurityConsideration(AIModel):
    area: str
    status: Literal["secure", "needs_attention", "vulnerable"]
    details: str
    recommendations: List[str]


class AIPerformanceConsideration(AIModel):
    area: str
    assessment: str
    concerns: List[str]
    optimizations: List[str]


class AINextStep(AIModel):
    priority: Severity
    action: str
    effort: Effort
    rationale: str


class AIValidationInsights(AIModel):
    strengths: List[str]
    weaknesses: List[str]
    surprises: List[str]
    confidence: float = _confidence()


class AIFeatureValidation(AIModel):
    feature_name: str
    overall_status: Literal["not_started", "in_progress", "mostly_complete", "complete", "over_engineered"]
    completion_percentage: float = _score()
    quality_score: float = _score()
    task_validations: List[AITaskValidation]
    architectural_alignment: AIArchitecturalAlignment
    test_coverage: AITestCoverage
    security_considerations: List[AISecurityConsideration]
    performance_considerations: List[AIPerformanceConsideration]
    next_steps: List[AINextStep]
    ai_insights: AIValidationInsights


# ---------------------------------------------------------------------------
# Spec quality and task generation
# ---------------------------------------------------------------------------


class AIQualityDimensions(AIModel):
    clarity: float = _score()
    completeness: float = _score()
    testability: float = _score()
    feasibility: float = _score()
    business_value: float = _score()


class AISemanticIssue(AIModel):
    type: Literal[
        "ambiguous_requirement", "missing_acceptance_criteria", "vague_language",
        "conflicting_requirements", "missing_context", "unclear_scope",
        "missing_error_handling", "performance_gaps", "security_gaps",
    ]
    severity: Severity
    description: str
    location: str
    suggestion: str
    impact: str
    confidence: float = _confidence()


class AIQualityStrength(AIModel):
    aspect: str
    description: str
    examples: List[str]


class AIQualityImprovement(AIModel):
    priority: Severity
    category: Literal["clarity", "completeness", "testability", "feasibility", "business_value"]
    suggestion: str
    rationale: str
    example: Optional[str] = None


class AIQualityInsights(AIModel):
    confidence: float = _confidence()
    analysis_depth: Literal["surface", "standard", "deep"]
    context_factors: List[str]
    recommendations: List[str]


class AISpecQualityAnalysis(AIModel):
    overall_score: float = _score()
    grade: Grade
    quality_dimensions: AIQualityDimensions
    semantic_issues: List[AISemanticIssue]
    strengths: List[AIQualityStrength]
    improvements: List[AIQualityImprovement]
    ai_insights: AIQualityInsights


class AITaskImplementation(AIModel):
    approach: str
    technical_steps: List[str]
    file_locations: List[str]
    code_patterns: List[str]
    dependencies: List[str]
    risk_factors: List[str]


class AIAcceptanceCriterion(AIModel):
    criteria: str
    validation_method: str
    priority: Literal["must_have", "should_have", "nice_to_have"]
    testable: bool


class AIEffortEstimate(AIModel):
    size: Effort
    hours: Optional[float] = None
    complexity: Level
    uncertainty: Level


class AIBusinessValue(AIModel):
    user_impact: str
    business_impact: str
    priority: Severity


class AITechnicalConsideration(AIModel):
    category: Literal["performance", "security", "scalability", "maintainability", "compatibility"]
    description: str
    impact: Level
    mitigation: Optional[str] = None


class AITaskDependency(AIModel):
    task_title: str
    relationship: Literal["blocks", "enables", "enhances"]
    reason: str


class AITestingStrategy(AIModel):
    unit_tests: List[str]
    integration_tests: List[str]
    e2e_tests: List[str] = Field(alias="e2eTests")
    manual_tests: List[str]
    test_data: List[str]


class AITaskInsights(AIModel):
    confidence: float = _confidence()
    alternative_approaches: List[str]
    potential_issues: List[str]
    optimizations: List[str]


class AIGeneratedTask(AIModel):
    title: str
    summary: str
    description: str
    implementation: AITaskImplementation
    acceptance_criteria: List[AIAcceptanceCriterion]
    estimated_effort: AIEffortEstimate
    business_value: AIBusinessValue
    technical_considerations: List[AITechnicalConsideration]
    dependencies: List[AITaskDependency]
    testing_strategy: AITestingStrategy
    ai_insights: AITaskInsights


class AITaskRelationship(AIModel):
    from_task: str
    to_task: str
    relationship: Literal["prerequisite", "parallel", "sequential", "optional"]
    description: str


class AIImplementationPhase(AIModel):
    name: str
    tasks: List[str]
    deliverables: List[str]
    duration: str


class AIImplementationStrategy(AIModel):
    approach: Literal["incremental", "big_bang", "parallel", "phased"]
    phases: List[AIImplementationPhase]
    risk_mitigation: List[str]
    success_criteria: List[str]


class AITaskQualityMetrics(AIModel):
    task_count: int
    average_complexity: float = Field(ge=1, le=5)
    coverage_score: float = _score()
    actionability_score: float = _score()
    testability_score: float = _score()


class AITaskGeneration(AIModel):
    tasks: List[AIGeneratedTask]
    task_relationships: List[AITaskRelationship]
    implementation_strategy: AIImplementationStrategy
    quality_metrics: AITaskQualityMetrics


class AIPatternAlignment(AIModel):
    pattern: str
    compliance: Compliance
    recommendation: str


class AIIntegrationPoint(AIModel):
    component: str
    complexity: Level
    considerations: List[str]


class AIProjectAlignment(AIModel):
    tech_stack_compatibility: float = _score()
    architectural_fit: float = _score()
    pattern_compliance: List[AIPatternAlignment]
    integration_points: List[AIIntegrationPoint]


class AIUserStory(AIModel):
    role: str
    goal: str
    benefit: str
    priority: Severity
    extracted_from: str


class AIBusinessContext(AIModel):
    user_stories: List[AIUserStory]
    business_value: str
    stakeholders: List[str]
    success_metrics: List[str]


class AIRiskArea(AIModel):
    area: str
    risk: str
    mitigation: str
    impact: Level


class AIExternalDependency(AIModel):
    type: Literal["internal", "external", "technical", "business"]
    description: str
    impact: Level
    mitigation: str


class AIImplementationGuidance(AIModel):
    recommended_approach: str
    critical_path: List[str]
    quick_wins: List[str]
    risk_areas: List[AIRiskArea]
    dependencies: List[AIExternalDependency]


class AIAnalysisMetadata(AIModel):
    analysis_timestamp: str
    model_confidence: float = _confidence()
    analysis_depth: Literal["quick", "standard", "comprehensive"]
    context_factors: List[str]
    limitations: List[str]
    recommendations: List[str]


class AISpecParserAnalysis(AIModel):
    quality_analysis: AISpecQualityAnalysis
    task_generation: AITaskGeneration
    project_alignment: AIProjectAlignment
    business_context: AIBusinessContext
    implementation_guidance: AIImplementationGuidance
    ai_metadata: AIAnalysisMetadata


# ---------------------------------------------------------------------------
# Gherkin
# ---------------------------------------------------------------------------


class AIGherkinParameter(AIModel):
    name: str
    value: str
    type: Optional[Literal["string", "number", "boolean", "object"]] = None


class AIGherkinStep(AIModel):
    type: Literal["given", "when", "then", "and", "but"]
    text: str
    parameters: Optional[List[AIGherkinParameter]] = None


class AIGherkinExample(AIModel):
    description: str
    data: Dict[str, str]


class AIGherkinScenario(AIModel):
    type: Literal[
        "happy_path", "error_handling", "edge_case", "integration",
        "security", "performance", "validation",
    ]
    title: str
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    steps: List[AIGherkinStep]
    examples: Optional[List[AIGherkinExample]] = None
    priority: Literal["critical", "high", "medium", "low"]
    estimated_duration: Optional[str] = None


class AIGherkinRule(AIModel):
    title: str
    scenarios: List[AIGherkinScenario]


class AIGherkinFeature(AIModel):
    title: str
    description: str
    background: Optional[List[AIGherkinStep]] = None
    scenarios: List[AIGherkinScenario]
    rules: Optional[List[AIGherkinRule]] = None
    testing_notes: str
    coverage_areas: List[str]


class AIGherkinQualityMetrics(AIModel):
    scenario_count: int
    coverage_score: float = _score()
    actionability_score: float = _score()
    maintainability_score: float = _score()


class AIAutomationReadiness(AIModel):
    score: float = _score()
    blockers: List[str]
    recommendations: List[str]


class AIGherkinInsights(AIModel):
    confidence: float = _confidence()
    improvements: List[str]
    patterns: List[str]


class AIGherkinAnalysis(AIModel):
    feature: AIGherkinFeature
    quality_metrics: AIGherkinQualityMetrics
    technical_considerations: List[str]
    automation_readiness: AIAutomationReadiness
    ai_insights: AIGherkinInsights


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

SCHEMAS: Dict[str, Type[AIModel]] = {
    "AICodebaseAnalysisSchema": AICodebaseAnalysis,
    "AICodebaseAnalysisWithContextSchema": AICodebaseAnalysisWithContext,
    "AIContextFilesSchema": AIContextFiles,
    "AISpecAnalysisSchema": AISpecAnalysis,
    "AISimilarityAnalysisSchema": AISimilarityAnalysis,
    "AIFeatureValidationSchema": AIFeatureValidation,
    "AIGherkinAnalysisSchema": AIGherkinAnalysis,
    "AISpecQualityAnalysisSchema": AISpecQualityAnalysis,
    "AITaskGenerationSchema": AITaskGeneration,
    "AISpecParserAnalysisSchema": AISpecParserAnalysis,
}


def get_schema(name: str) -> Type[AIModel]:
    try:
        return SCHEMAS[name]
    except KeyError:
        raise KeyError(f"Unknown schema '{name}'. Available: {', '.join(sorted(SCHEMAS))}") from None


def json_schema(name: str) -> dict:
    return get_schema(name).model_json_schema(by_alias=True)


def format_validation_errors(error: ValidationError) -> List[Dict[str, str]]:
    """Flatten a pydantic error into ``{path, message}`` entries."""
    return [
        {"path": ".".join(str(part) for part in item["loc"]), "message": item["msg"]}
        for item in error.errors()
    ]
