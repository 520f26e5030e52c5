"""Shared fixtures: an initialized project and valid AI analysis payloads."""

import copy

import pytest

from speclinter.config import config_manager
from speclinter.project import init_project
from speclinter.schema_examples import generate_codebase_analysis_example


SPEC_ANALYSIS = {
    "quality": {
        "score": 82,
        "grade": "B",
        "issues": [
            {
                "type": "vague_language",
                "severity": "medium",
                "message": "'fast' is not measurable",
                "suggestion": "State a response time such as 200ms",
                "points": 5,
            }
        ],
        "strengths": ["Clear user story"],
        "improvements": ["Describe the lockout behaviour"],
    },
    "tasks": [
        {
            "title": "Create login endpoint",
            "summary": "POST /login validates credentials and returns a session token",
            "implementation": "Add a route in src/auth/login.py using the Error Handling Pattern",
            "acceptanceCriteria": ["Valid credentials return 200 with a token", "Invalid credentials return 401"],
            "estimatedEffort": "S",
            "dependencies": [],
            "testingNotes": "Seed one user in the test database",
            "relevantPatterns": ["Error Handling Pattern"],
            "riskFactors": [],
            "securityConsiderations": ["Hash passwords with bcrypt"],
            "performanceConsiderations": [],
            "userExperience": "Errors are shown inline",
            "technicalDebt": [],
        },
        {
            "title": "Add lockout after failed attempts",
            "summary": "Lock the account for 15 minutes after 5 failed attempts",
            "implementation": "Track attempts per user in the users table",
            "acceptanceCriteria": ["The sixth attempt within 15 minutes returns 423"],
            "estimatedEffort": "M",
            "dependencies": ["Create login endpoint"],
            "testingNotes": "Freeze time in tests",
            "relevantPatterns": [],
            "riskFactors": ["Denial of service through deliberate lockouts"],
            "securityConsiderations": [],
            "performanceConsiderations": [],
            "userExperience": "Show the remaining lockout time",
            "technicalDebt": [],
        },
    ],
    "technicalConsiderations": ["Sessions are stored server side"],
    "userStories": ["As a user I want to log in so that I can see my dashboard"],
    "businessValue": "Users can access their accounts",
    "scope": {
        "inScope": ["Email and password login"],
        "outOfScope": ["OAuth"],
        "assumptions": ["Users already exist"],
    },
}

GHERKIN_ANALYSIS = {
    "feature": {
        "title": "User Login",
        "description": "Users sign in with email and password",
        "background": [{"type": "given", "text": "the login page is open"}],
        "scenarios": [
            {
                "type": "happy_path",
                "title": "Successful login",
                "tags": ["smoke"],
                "steps": [
                    {"type": "given", "text": 'a user exists with email "user@example.com"'},
                    {"type": "when", "text": "they submit the correct password"},
                    {"type": "then", "text": "they are redirected to the dashboard"},
                ],
                "priority": "high",
            },
            {
                "type": "error_handling",
                "title": "Wrong password",
                "steps": [
                    {"type": "given", "text": 'a user exists with email "user@example.com"'},
                    {"type": "when", "text": "they submit a wrong password"},
                    {"type": "then", "text": 'the message "Invalid credentials" is shown'},
                ],
                "priority": "high",
            },
        ],
        "testingNotes": "Use a seeded database",
        "coverageAreas": ["authentication"],
    },
    "qualityMetrics": {
        "scenarioCount": 2,
        "coverageScore": 85,
        "actionabilityScore": 90,
        "maintainabilityScore": 80,
    },
    "technicalConsiderations": ["Reset the database between scenarios"],
    "automationReadiness": {"score": 88, "blockers": [], "recommendations": []},
    "aiInsights": {"confidence": 0.9, "improvements": [], "patterns": []},
}

FEATURE_VALIDATION = {
    "featureName": "user-login",
    "overallStatus": "in_progress",
    "completionPercentage": 50,
    "qualityScore": 75,
    "taskValidations": [
        {
            "taskId": "task_01",
            "title": "Create login endpoint",
            "implementationStatus": "fully_implemented",
            "qualityScore": 85,
            "implementationFiles": ["src/auth/login.py"],
            "acceptanceCriteriaValidation": [
                {
                    "criteria": "Valid credentials return 200 with a token",
                    "status": "met",
                    "evidence": "login() returns a token",
                    "confidence": 0.9,
                }
            ],
            "patternCompliance": [
                {"pattern": "Error Handling Pattern", "compliance": "follows", "examples": ["login()"]}
            ],
            "codeQualityIssues": [],
            "missingComponents": [],
            "recommendations": [],
        },
        {
            "taskId": "task_02",
            "title": "Add lockout after failed attempts",
            "implementationStatus": "not_implemented",
            "qualityScore": 0,
            "implementationFiles": [],
            "acceptanceCriteriaValidation": [],
            "patternCompliance": [],
            "codeQualityIssues": [
                {
                    "type": "security",
                    "severity": "critical",
                    "description": "No brute force protection",
                    "location": "src/auth/login.py",
                    "suggestion": "Count failed attempts",
                }
            ],
            "missingComponents": ["Attempt counter"],
            "recommendations": ["Implement the lockout"],
        },
    ],
    "architecturalAlignment": {"score": 80, "strengths": [], "concerns": [], "recommendations": []},
    "testCoverage": {
        "hasTests": True,
        "testTypes": ["unit"],
        "coverage": 65,
        "testQuality": "fair",
        "missingTests": ["lockout"],
    },
    "securityConsiderations": [
        {"area": "authentication", "status": "needs_attention", "details": "No lockout", "recommendations": []}
    ],
    "performanceConsiderations": [],
    "nextSteps": [
        {"priority": "low", "action": "Document the endpoint", "effort": "XS", "rationale": "Onboarding"},
        {"priority": "critical", "action": "Add brute force protection", "effort": "S", "rationale": "Security"},
        {"priority": "medium", "action": "Add lockout tests", "effort": "S", "rationale": "Coverage"},
    ],
    "aiInsights": {"strengths": [], "weaknesses": [], "surprises": [], "confidence": 0.8},
}

SIMILARITY_ANALYSIS = {
    "similarFeatures": [
        {
            "featureName": "user-login",
            "similarityScore": 0.9,
            "similarityReasons": ["Both authenticate users", "Same login form"],
            "differences": ["The new spec adds OAuth"],
            "recommendation": "merge",
        },
        {
            "featureName": "profile-page",
            "similarityScore": 0.3,
            "similarityReasons": ["Shares the user model"],
            "differences": ["Different purpose"],
            "recommendation": "separate",
        },
    ],
    "overallAssessment": "The spec mostly duplicates user-login",
    "confidence": 0.85,
}

SPEC_QUALITY_ANALYSIS = {
    "overallScore": 72,
    "grade": "C",
    "qualityDimensions": {
        "clarity": 70,
        "completeness": 65,
        "testability": 80,
        "feasibility": 90,
        "businessValue": 60,
    },
    "semanticIssues": [
        {
            "type": "vague_language",
            "severity": "medium",
            "description": "'fast' is not measurable",
            "location": "Requirements, line 2",
            "suggestion": "State a response time",
            "impact": "Performance cannot be tested",
            "confidence": 0.8,
        }
    ],
    "strengths": [{"aspect": "User story", "description": "Clear actor and goal", "examples": []}],
    "improvements": [
        {
            "priority": "high",
            "category": "testability",
            "suggestion": "Add acceptance criteria for lockout",
            "rationale": "Lockout behaviour is untestable as written",
        }
    ],
    "aiInsights": {
        "confidence": 0.85,
        "analysisDepth": "standard",
        "contextFactors": ["Python backend"],
        "recommendations": ["Split OAuth into its own feature"],
    },
}

GENERATED_TASK = {
    "title": "Create login endpoint",
    "summary": "POST /login validates credentials",
    "description": "Accept email and password and return a session token",
    "implementation": {
        "approach": "Add a route to the auth blueprint",
        "technicalSteps": ["Add the route", "Check the password hash"],
        "fileLocations": ["src/auth/login.py"],
        "codePatterns": ["Error Handling Pattern"],
        "dependencies": [],
        "riskFactors": ["Timing attacks"],
    },
    "acceptanceCriteria": [
        {
            "criteria": "Valid credentials return 200",
            "validationMethod": "integration test",
            "priority": "must_have",
            "testable": True,
        }
    ],
    "estimatedEffort": {"size": "S", "hours": 4, "complexity": "medium", "uncertainty": "low"},
    "businessValue": {"userImpact": "Users can sign in", "businessImpact": "Retention", "priority": "high"},
    "technicalConsiderations": [],
    "dependencies": [],
    "testingStrategy": {
        "unitTests": ["password check"],
        "integrationTests": ["login route"],
        "e2eTests": [],
        "manualTests": [],
        "testData": ["one seeded user"],
    },
    "aiInsights": {"confidence": 0.8, "alternativeApproaches": [], "potentialIssues": [], "optimizations": []},
}

TASK_GENERATION = {
    "tasks": [GENERATED_TASK],
    "taskRelationships": [],
    "implementationStrategy": {
        "approach": "incremental",
        "phases": [
            {
                "name": "Phase 1",
                "tasks": ["Create login endpoint"],
                "deliverables": ["Working endpoint"],
                "duration": "1 day",
            }
        ],
        "riskMitigation": [],
        "successCriteria": ["Users can log in"],
    },
    "qualityMetrics": {
        "taskCount": 1,
        "averageComplexity": 2.5,
        "coverageScore": 85,
        "actionabilityScore": 90,
        "testabilityScore": 80,
    },
}

SPEC_PARSER_ANALYSIS = {
    "qualityAnalysis": SPEC_QUALITY_ANALYSIS,
    "taskGeneration": TASK_GENERATION,
    "projectAlignment": {
        "techStackCompatibility": 90,
        "architecturalFit": 85,
        "patternCompliance": [],
        "integrationPoints": [],
    },
    "businessContext": {
        "userStories": [],
        "businessValue": "Users can access their accounts",
        "stakeholders": ["Support team"],
        "successMetrics": ["Login success rate above 95%"],
    },
    "implementationGuidance": {
        "recommendedApproach": "Build the endpoint first",
        "criticalPath": ["Create login endpoint"],
        "quickWins": [],
        "riskAreas": [],
        "dependencies": [],
    },
    "aiMetadata": {
        "analysisTimestamp": "2026-01-01T00:00:00Z",
        "modelConfidence": 0.9,
        "analysisDepth": "standard",
        "contextFactors": [],
        "limitations": [],
        "recommendations": [],
    },
}


@pytest.fixture
def project(tmp_path):
    """An initialized SpecLinter project rooted at ``tmp_path``."""
    result = init_project(str(tmp_path))
    assert result["success"]
    yield tmp_path.resolve()
    config_manager.clear_cache()


@pytest.fixture
def spec_analysis():
    return copy.deepcopy(SPEC_ANALYSIS)


@pytest.fixture
def gherkin_analysis():
    return copy.deepcopy(GHERKIN_ANALYSIS)


@pytest.fixture
def feature_validation():
    return copy.deepcopy(FEATURE_VALIDATION)


@pytest.fixture
def similarity_analysis():
    return copy.deepcopy(SIMILARITY_ANALYSIS)


@pytest.fixture
def spec_quality_analysis():
    return copy.deepcopy(SPEC_QUALITY_ANALYSIS)


@pytest.fixture
def task_generation():
    return copy.deepcopy(TASK_GENERATION)


@pytest.fixture
def spec_parser_analysis():
    return copy.deepcopy(SPEC_PARSER_ANALYSIS)


@pytest.fixture
def codebase_analysis():
    return generate_codebase_analysis_example()
