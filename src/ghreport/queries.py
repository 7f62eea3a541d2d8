"""
GraphQL query documents used by the reports.

Every paginated query takes its cursor in ``$page`` and exposes ``pageInfo``
and ``nodes`` on the connection being walked.
"""

WORKFLOWS_EXPRESSION = "HEAD:.github/workflows"

ENTERPRISE_ORGANIZATIONS_QUERY = """
query OrgList($enterprise: String!, $page: String) {
  enterprise(slug: $enterprise) {
    organizations(first: 100, after: $page, orderBy: {field: LOGIN, direction: ASC}) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        login
      }
    }
  }
}
"""

# Repository metadata and the workflow tree (with blob text) in one round trip.
# Page size stays at 10 because blob text makes every node expensive.
ACTION_USES_QUERY = """
query ActionUses($owner: String!, $page: String, $ref: String!) {
  repositoryOwner(login: $owner) {
    repositories(first: 10, after: $page, affiliations: OWNER, orderBy: {field: NAME, direction: DESC}) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        name
        nameWithOwner
        owner {
          login
        }
        isArchived
        isFork
        object(expression: $ref) {
          ... on Tree {
            entries {
              path
              name
              extension
              type
              object {
                ... on Blob {
                  text
                  abbreviatedOid
                  byteSize
                  isBinary
                  isTruncated
                }
              }
            }
          }
        }
      }
    }
  }
}
"""

ORGANIZATION_REPOSITORIES_QUERY = """
query RepoList($owner: String!, $page: String) {
  organization(login: $owner) {
    repositories(first: 100, after: $page) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        name
        nameWithOwner
        owner {
          login
        }
        visibility
        isArchived
        isFork
        diskUsage
        defaultBranchRef {
          name
        }
        createdAt
        updatedAt
      }
    }
  }
}
"""

ORGANIZATION_MEMBERS_QUERY = """
query MemberList($org: String!, $page: String) {
  organization(login: $org) {
    membersWithRole(first: 100, after: $page) {
      totalCount
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        login
        name
        email
        organizationVerifiedDomainEmails(login: $org)
      }
    }
  }
}
"""
