# src/extraction/lexicon.py — v1
"""Skill lexicons used by keyword and skill extraction.

Entries are lowercase and contain no spaces: multi-word skills are
written joined ("springboot", "reactnative") and matched against joined
adjacent tokens.
"""

from __future__ import annotations

TECHNICAL_SKILLS: frozenset[str] = frozenset({
    # Enterprise languages & frameworks
    "java", "spring", "springboot", "hibernate", "junit", "maven", "gradle",
    "csharp", "dotnet", "aspnet", "entityframework", "blazor", "xamarin",
    "vbnet", "fsharp", "wcf", "webapi", "linq", "nunit", "xunit",
    # Databases
    "sql", "nosql", "oracle", "sqlserver", "postgresql", "mysql", "mongodb",
    "redis", "cassandra", "elasticsearch", "dynamodb", "cosmosdb",
    # Integration
    "soap", "rest", "graphql", "grpc", "kafka", "rabbitmq", "activemq",
    "servicebus", "biztalk", "mulesoft", "apacheflink", "tibco",
    # Cloud & DevOps
    "aws", "azure", "gcp", "docker", "kubernetes", "jenkins", "terraform",
    "ansible", "circleci", "github", "gitlab", "nginx", "apache", "iis",
    # Web
    "javascript", "typescript", "react", "angular", "vue", "jquery",
    "bootstrap", "tailwind", "sass", "webpack", "babel", "node",
    # Testing & quality
    "selenium", "mstest", "specflow", "cucumber", "postman", "soapui",
    "jmeter", "gatling",
    # Architecture & patterns
    "microservices", "eventdriven", "cqrs", "ddd", "tdd", "cleancode",
    "solidprinciples", "designpatterns", "oauth", "jwt",
    # Tooling
    "jira", "confluence", "bitbucket", "azuredevops", "teamcity",
    "octopus", "sonarqube", "fortify", "splunk", "newrelic",
    # Other languages & platforms
    "python", "nodejs", "php", "ruby", "golang", "rust",
    "android", "ios", "flutter", "reactnative",
})

SOFT_SKILLS: frozenset[str] = frozenset({
    # Leadership & management
    "leadership", "management", "mentoring", "coaching", "delegation",
    # Communication
    "communication", "presentation", "negotiation", "documentation",
    # Collaboration
    "teamwork", "collaboration", "coordination", "facilitation",
    # Problem solving
    "problemsolving", "analytical", "research", "troubleshooting", "debugging",
    # Project management
    "agile", "scrum", "kanban", "waterfall", "planning", "estimation",
    # Personal qualities
    "initiative", "adaptability", "creativity", "innovation", "reliability",
    # Business
    "strategy", "budgeting", "stakeholder", "requirements", "analysis",
    # Learning & growth
    "learning", "growth", "improvement", "development", "training",
    # Time management
    "timemanagement", "prioritization", "organization", "efficiency",
    # Critical thinking
    "criticalthinking", "decisionmaking", "evaluation", "assessment",
})

EXCLUDED_WORDS: frozenset[str] = frozenset({
    # Common verbs
    "is", "are", "was", "were", "be", "have", "has", "had", "do", "does", "did",
    # Articles and prepositions
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with",
    # Job-posting boilerplate
    "required", "preferred", "must", "should", "will", "can", "able", "years",
    "experience", "work", "working", "job", "position", "candidate", "role",
    "responsibilities", "qualifications", "skills", "knowledge", "degree",
    "background", "plus", "minimum", "maximum", "etc", "including",
    # Technical terms too generic to count
    "system", "software", "application", "data", "code", "program", "development",
    "implementation", "design", "solution", "platform", "environment",
})

ALL_SKILLS: frozenset[str] = TECHNICAL_SKILLS | SOFT_SKILLS

MAX_PHRASE_WORDS = 3
