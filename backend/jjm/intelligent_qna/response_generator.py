DEVICE_NAMES = {
    "flow_meter": ("flow meters", "flow_meter_integrated"),
    "rca": ("residual chlorine analyzers", "rca_integrated"),
    "pressure_transmitter": ("pressure transmitters", "pressure_transmitter_integrated"),
}

HELP_TEXT = (
    "I can help you with the JJM Maharashtra dashboard. Try asking:\n"
    "- Show fully completed schemes\n"
    "- Show schemes in Nashik\n"
    "- How many villages are integrated in Pune?\n"
    "- How many ESRs are fully completed?\n"
    "- How many flow meters are installed?\n"
    "- Compare Nagpur and Amravati\n"
    "- Show the region summary"
)

GREETING_TEXT = (
    "Hello! I'm the JJM Assistant. Ask me about schemes, villages, ESRs or "
    "IoT devices in any Maharashtra region."
)


def _total(results, column):
    if column not in results.columns:
        return 0
    return int(results[column].fillna(0).sum())


def _scope(entities):
    region = entities.get("region")
    return f"{region} region" if region else "all regions"


def generate_response(intent_data, results):
    """
    Convert query results into a user-friendly textual summary.
    """
    intent = intent_data.get("intent", "")
    entities = intent_data.get("entities", {})
    region = entities.get("region")

    if intent == "greeting":
        return GREETING_TEXT
    if intent == "help":
        return HELP_TEXT

    if results is None or results.empty:
        if region:
            return f"I couldn't find any data for {region} region. Please check the region name and try again."
        return "No matching data found for your query."

    if intent == "completed_schemes":
        names = "\n".join(f"- {r['scheme_name']} ({r['region']})" for _, r in results.head(10).iterrows())
        more = f"\n...and {len(results) - 10} more." if len(results) > 10 else ""
        return f"✅ {len(results)} fully completed schemes in {_scope(entities)}:\n{names}{more}"

    elif intent == "region_schemes":
        completed = int((results["fully_completion_scheme_status"] == "Fully-Completed").sum())
        return (
            f"📍 {region} region has {len(results)} schemes, "
            f"of which {completed} are fully completed."
        )

    elif intent == "compare_regions":
        lines = [
            f"- {r['region_name']}: {int(r['total_schemes_integrated'] or 0)} schemes "
            f"({int(r['fully_completed_schemes'] or 0)} completed), "
            f"{int(r['total_villages_integrated'] or 0)} villages, "
            f"{int(r['total_esr_integrated'] or 0)} ESRs"
            for _, r in results.iterrows()
        ]
        if len(lines) < 2:
            found = ", ".join(results["region_name"])
            return f"I could only find data for {found}. Please check the region names and try again."
        return "📊 Region comparison:\n" + "\n".join(lines)

    elif intent == "scheme_count":
        return (
            f"There are {_total(results, 'total_schemes_integrated')} schemes in {_scope(entities)}, "
            f"with {_total(results, 'fully_completed_schemes')} fully completed."
        )

    elif intent == "village_count":
        return (
            f"There are {_total(results, 'total_villages_integrated')} villages integrated in "
            f"{_scope(entities)}, with {_total(results, 'fully_completed_villages')} fully completed."
        )

    elif intent == "esr":
        return (
            f"There are a total of {_total(results, 'total_esr_integrated')} ESRs integrated across "
            f"{_scope(entities)}, with {_total(results, 'fully_completed_esr')} fully completed and "
            f"{_total(results, 'partial_esr')} partially completed."
        )

    elif intent == "device":
        label, column = DEVICE_NAMES[entities.get("device") or "flow_meter"]
        where = f"in {region} region" if region else "across all regions"
        return f"There are {_total(results, column)} {label} integrated {where}."

    elif intent == "region_summary":
        return (
            f"📊 Summary for {_scope(entities)}: "
            f"{_total(results, 'total_schemes_integrated')} schemes "
            f"({_total(results, 'fully_completed_schemes')} fully completed), "
            f"{_total(results, 'total_villages_integrated')} villages, "
            f"{_total(results, 'total_esr_integrated')} ESRs, "
            f"{_total(results, 'flow_meter_integrated')} flow meters, "
            f"{_total(results, 'rca_integrated')} RCAs and "
            f"{_total(results, 'pressure_transmitter_integrated')} pressure transmitters."
        )

    else:
        return "❓ I'm not sure how to answer that yet. Type 'help' to see what I can do."
