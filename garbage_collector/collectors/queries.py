"""Time-series queries used to find leaked test sessions.

Both queries project the columns read by ``SessionQueryRow``:
createdTime, sessionId, nodeId, daysLeaked, experimentId,
experimentName, impactType, createdBy, cluster.
"""

# Sessions the orchestration layer mapped to an experiment that has since
# finished, with the impact reported by the experiment's own bookkeeping.
MAPPED_SESSIONS_QUERY = """
let lookback = 30d;
let finishedExperiments = ExperimentStatusSnapshot
| where Timestamp > ago(lookback)
| summarize arg_max(Timestamp, Status) by ExperimentId
| where Status in ("Succeeded", "Failed", "Cancelled");
TestSessionSnapshot
| where Timestamp > ago(1h)
| summarize arg_max(Timestamp, *) by SessionId
| where SessionStatus !in ("Deleted", "Deleting")
| join kind=inner finishedExperiments on ExperimentId
| project
    createdTime = tostring(SessionCreatedTime),
    sessionId = tostring(SessionId),
    nodeId = tostring(NodeId),
    daysLeaked = tostring(datetime_diff("day", now(), SessionCreatedTime)),
    experimentId = tostring(ExperimentId),
    experimentName = tostring(ExperimentName),
    impactType = tostring(ImpactType),
    createdBy = tostring(CreatedBy),
    cluster = tostring(ClusterName)
"""

# Sessions still allocated on a node with no experiment mapping at all.
ORPHANED_SESSIONS_QUERY = """
let mappedSessions = ExperimentSessionMapping
| where Timestamp > ago(30d)
| distinct SessionId;
NodeSessionSnapshot
| where Timestamp > ago(1h)
| summarize arg_max(Timestamp, *) by SessionId
| where SessionStatus !in ("Deleted", "Deleting")
| where SessionId !in (mappedSessions)
| project
    createdTime = tostring(SessionCreatedTime),
    sessionId = tostring(SessionId),
    nodeId = tostring(NodeId),
    daysLeaked = tostring(datetime_diff("day", now(), SessionCreatedTime)),
    experimentId = "",
    experimentName = "",
    impactType = "None",
    createdBy = tostring(CreatedBy),
    cluster = tostring(ClusterName)
"""
