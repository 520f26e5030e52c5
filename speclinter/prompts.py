"""Prompt templates handed to the IDE's model by the prepare tools.

Placeholders look like ``{techStack}`` and are filled by :func:`fill`.
"""

from __future__ import annotations

SPEC_QUALITY_ANALYSIS = """You are an expert software specification analyst. Analyze the provided specification for quality, clarity and completeness.

**SPECIFICATION TO ANALYZE:**
{specification}

**PROJECT CONTEXT:**
{projectContext}

**ANALYSIS REQUIREMENTS:**
1. **Semantic Quality Assessment**: Evaluate clarity, completeness, testability, feasibility and business value
2. **Issue Detection**: Identify ambiguous requirements, missing acceptance criteria, vague language, conflicting requirements and scope gaps
3. **Strength Identification**: Point out what the specification does well, with specific examples
4. **Improvement Recommendations**: Give prioritized, actionable suggestions with rationale

**QUALITY DIMENSIONS (0-100 each):**
- **Clarity**: How clear and unambiguous are the requirements?
- **Completeness**: Are all necessary details provided?
- **Testability**: Can the requirements be tested and validated?
- **Feasibility**: Are the requirements technically achievable?
- **Business Value**: Is the business value clearly articulated?

**CONTEXT FACTORS:**
- Project tech stack: {techStack}
- Existing patterns: {codePatterns}
- Architecture: {architecture}
- Team experience level: {teamLevel}

Return JSON matching the AISpecQualityAnalysisSchema. Judge meaning, not keywords."""

TASK_GENERATION = """You are an expert software architect and project manager. Break the provided specification down into actionable tasks.

**SPECIFICATION:**
{specification}

**QUALITY ANALYSIS RESULTS:**
{qualityAnalysis}

**PROJECT CONTEXT:**
{projectContext}

**TASK GENERATION REQUIREMENTS:**
1. **Breakdown**: Tasks that together fully implement the specification
2. **Implementation Guidance**: Specific technical steps, file locations and code patterns
3. **Acceptance Criteria**: Measurable, testable criteria with validation methods
4. **Effort Estimation**: Realistic estimates with complexity and uncertainty factors
5. **Business Value**: Tie each task to user and business impact
6. **Technical Considerations**: Performance, security, scalability and maintainability
7. **Testing Strategy**: The testing approach for each task
8. **Dependencies**: Task relationships

**CONTEXT:**
- Tech Stack: {techStack}
- Test Framework: {testFramework}
- Code Patterns: {codePatterns}
- Architecture: {architecture}
- Project Structure: {projectStructure}
- Task Complexity: {taskComplexity}

**TASK QUALITY CRITERIA:**
- Each task is completable by one developer in 4-8 hours
- Outcomes are measurable
- Guidance is specific to the project's technology
- Acceptance criteria are testable
- Dependencies are explicit

Return JSON matching the AITaskGenerationSchema."""

SPEC_PARSER_ANALYSIS = """You are an expert software specification analyst and architect. Perform a full analysis of the provided specification: quality assessment, task generation and implementation guidance.

**SPECIFICATION TO ANALYZE:**
{specification}

**PROJECT CONTEXT:**
- Tech Stack: {techStack}
- Architecture: {architecture}
- Code Patterns: {codePatterns}
- Project Structure: {projectStructure}
- Test Framework: {testFramework}
- Team Context: {teamContext}

**ANALYSIS REQUIREMENTS:**

1. **QUALITY ANALYSIS**
   - Semantic evaluation across clarity, completeness, testability, feasibility and business value
   - Issues with severity, location and actionable suggestions
   - Strengths with specific examples
   - Prioritized improvements

2. **TASK GENERATION**
   - Task breakdown with implementation guidance
   - Acceptance criteria with validation methods
   - Effort estimates with complexity and uncertainty factors
   - Business value per task
   - Technical considerations
   - Testing strategy (unit, integration, e2e, manual)
   - Task dependencies and relationships

3. **PROJECT ALIGNMENT**
   - Tech stack compatibility
   - Architectural fit
   - Pattern compliance
   - Integration points

4. **BUSINESS CONTEXT**
   - User stories, extracted or inferred
   - Business value
   - Stakeholders
   - Success metrics

5. **IMPLEMENTATION GUIDANCE**
   - Recommended approach
   - Critical path
   - Quick wins
   - Risks and mitigations
   - External dependencies

**ANALYSIS DEPTH**: {analysisDepth}
**FOCUS AREAS**: {focusAreas}

Return JSON matching the AISpecParserAnalysisSchema."""

CODEBASE_ANALYSIS = """Analyze the provided codebase files and produce project documentation.

**PROJECT CONTEXT ANALYSIS**
- Project purpose and core domain: what problem does it solve?
- Target users and use cases
- Value proposition
- Key domain concepts and terminology

**ARCHITECTURAL DECISION ANALYSIS**
For each major technical choice, identify:
- The decision made
- The context that led to it
- Rationale and benefits
- Trade-offs and limitations
- Alternatives that were considered

**DEVELOPMENT WORKFLOW ANALYSIS**
- How does work flow from specification to release?
- What is the testing and validation approach?
- What are the key development patterns?

**INTEGRATION PATTERN ANALYSIS**
- External APIs and protocols in use
- Database and storage patterns
- How the system is invoked by its users or other systems

**PERFORMANCE AND SCALABILITY ANALYSIS**
- Scalability factors and current limitations
- Existing performance optimizations
- How the architecture supports growth"""

SPEC_ANALYSIS = """Analyze the provided specification and extract the following.

**PROJECT ALIGNMENT (REQUIRED):**
- Align every task with the project tech stack and patterns below
- Reference specific project patterns and conventions in implementation guidance
- Keep tasks implementable within the existing architecture

**PROJECT CONTEXT:**
{projectContext}

**SPECIFICATION:**
{specification}

1. **Quality Assessment**
   - Overall score (0-100) and letter grade (A+ to F)
   - Vague requirements, missing acceptance criteria, unclear scope
   - Strengths such as clear user stories or well-defined constraints
   - Specific, actionable improvements

2. **Task Breakdown**
   - 5-10 implementable tasks with concrete deliverables, each 1-4 hours of work
   - Implementation guidance naming file paths, function names and code structure
   - Relevant project patterns for each task
   - Measurable, testable acceptance criteria
   - Security, performance and user experience considerations
   - Effort (XS, S, M, L, XL) and a testing approach

3. **Technical Considerations**: constraints, integration points and stack recommendations

4. **Business Context**: user stories, business value and target users

5. **Scope**: what is included, what is excluded and which assumptions are made

Return JSON matching the AISpecAnalysisSchema."""

SIMILARITY_ANALYSIS = """Analyze the provided specification against existing features to determine semantic similarity.

**NEW SPECIFICATION:**
{specification}

**EXISTING FEATURES:**
{existingFeatures}

1. **Semantic Comparison**: Compare meaning, intent, user goals and business objectives rather than wording
2. **Similarity Scoring**: Score 0.0-1.0 where 1.0 is identical functionality; above {threshold} needs attention. Give reasoning for each score
3. **Difference Analysis**: Implementation differences, different users or use cases, scope and business requirements
4. **Recommendations**:
   - "merge": the features are essentially the same
   - "separate": the features serve different purposes
   - "refactor": the overlap suggests an architectural change

Return JSON matching the AISimilarityAnalysisSchema."""

CONTEXT_FILE_GENERATION = """Based on your codebase analysis, generate complete context files.

**REQUIREMENTS:**
- Complete files written from scratch, no placeholders
- Project-specific content backed by file references
- Consistent markdown formatting

**FILES TO GENERATE:**
1. **project.md**: Project overview with a `## Stack` section of `- **Key**: Value` lines, then `## Constraints` and `## Standards` bullet lists
2. **patterns.md**: Discovered code patterns, each as `### Name (Confidence: N%)` followed by a description, `**Found in**:` files and an example
3. **architecture.md**: System architecture, design decisions and trade-offs

Include confidence scores for AI-detected items. Return JSON matching AIContextFilesSchema inside the `contextFiles` field."""

GHERKIN_GENERATION = """# AI Gherkin Scenario Generation

You are an expert test analyst. Generate actionable Gherkin scenarios for one development task.

## Task Context
**Task Title**: {taskTitle}
**Task Summary**: {taskSummary}
**Implementation Details**: {implementation}

## Acceptance Criteria
{acceptanceCriteria}

## Project Context
**Tech Stack**: {techStack}
**Testing Framework**: {testFramework}
**Code Patterns**: {codePatterns}
**Project Structure**: {projectStructure}

## Scenario Standards
- **Specific**: concrete examples instead of placeholders
- **Actionable**: every step can become an automated test
- **Measurable**: explicit assertions
- **Behavioral**: written from the user or system perspective

## Scenario Types
Cover the happy path, error handling, edge cases and integration with other components. Add security and performance scenarios where they apply.

## Step Guidelines
- **Given** sets up preconditions with specific data
- **When** describes a user action or system event
- **Then** asserts a measurable outcome
- Use concrete data such as "user@example.com" rather than "a valid email"

## Technical Considerations
- Steps must be automatable with {testFramework}
- Respect the project architecture: {projectStructure}
- Note setup, teardown and mocking needs

## Example

Generic:
```gherkin
Scenario: Create user - Happy Path
  Given the system is ready
  When Create user functionality is implemented
  Then the acceptance criteria are met
```

Specific:
```gherkin
Scenario: Successfully create user with valid data
  Given the user registration system is available
  And no user exists with email "newuser@example.com"
  When I submit user registration with:
    | email    | newuser@example.com |
    | password | SecurePass123!      |
  Then a new user account should be created
  And the response should include a user ID
```

Return JSON matching the AIGherkinAnalysisSchema."""

TEMPLATES = {
    "spec_quality_analysis": SPEC_QUALITY_ANALYSIS,
    "task_generation": TASK_GENERATION,
    "spec_parser_analysis": SPEC_PARSER_ANALYSIS,
    "codebase_analysis": CODEBASE_ANALYSIS,
    "spec_analysis": SPEC_ANALYSIS,
    "similarity_analysis": SIMILARITY_ANALYSIS,
    "context_file_generation": CONTEXT_FILE_GENERATION,
    "gherkin_generation": GHERKIN_GENERATION,
}


def fill(template: str, **values) -> str:
    """Substitute ``{name}`` placeholders literally.

    Unlike ``str.format`` this leaves braces it has no value for alone, so
    templates may contain JSON.
    """
    for name, value in values.items():
        template = template.replace("{" + name + "}", str(value))
    return template
