"""Statement-of-work narrative text for services and subservices.

Used to fill narrative fields the model left empty and to populate the static
fallback catalog. Text is keyed by phase for services and by keyword in the
name for subservices.
"""

from typing import Dict

NARRATIVE_FIELDS = (
    "service_description",
    "key_assumptions",
    "client_responsibilities",
    "out_of_scope",
)


def _service_descriptions(tech: str, name: str) -> Dict[str, str]:
    return {
        "Planning": (
            f"We will establish the foundation for a successful {tech} engagement by defining project parameters, stakeholder needs and initial requirements.\n"
            f"Our team will run discovery sessions, document business and technical requirements and set up project governance for {name}."
        ),
        "Design": (
            f"We will design the target {tech} architecture, including integration points, security controls and sizing.\n"
            f"Our architects will produce design documentation for {name} that your team reviews and approves before build work starts."
        ),
        "Implementation": (
            f"We will configure and deploy {tech} components according to the approved design specifications.\n"
            f"Our certified consultants will integrate {name} with your existing systems following vendor recommendations."
        ),
        "Testing": (
            f"We will verify that the {tech} solution meets the agreed acceptance criteria.\n"
            f"Our team will prepare test cases for {name}, execute them with your stakeholders and remediate defects found in scope."
        ),
        "Go-Live": (
            f"We will move the {tech} solution into production through a planned cutover.\n"
            f"Our consultants will coordinate {name}, monitor the transition and resolve issues raised during the cutover window."
        ),
        "Support": (
            f"We will stabilise the {tech} environment after go-live and hand it over to your operations team.\n"
            f"Our team will deliver {name} through hypercare, knowledge transfer sessions and final documentation."
        ),
    }


def _service_assumptions(tech: str) -> Dict[str, str]:
    return {
        "Planning": (
            "Key stakeholders and subject matter experts will be available for requirements sessions.\n"
            "Existing documentation for the current environment will be shared at project start.\n"
            "A project sponsor with decision-making authority will be designated."
        ),
        "Design": (
            "Environment documentation is accurate and current.\n"
            f"Design decisions for {tech} will be reviewed and approved within five business days.\n"
            "Hardware and software prerequisites will be identified during design."
        ),
        "Implementation": (
            "Administrative access to the required systems will be provided.\n"
            "Implementation work can be performed during agreed maintenance windows.\n"
            f"Required {tech} licenses and entitlements are available before build work starts."
        ),
        "Testing": (
            "A test environment representative of production will be available.\n"
            "Client testers will be available to execute acceptance scripts.\n"
            "Defects outside the delivered scope are tracked but not remediated."
        ),
        "Go-Live": (
            "The cutover date is agreed at least two weeks in advance.\n"
            "Change approvals are obtained by the client before the cutover window.\n"
            "A rollback decision owner is available during the cutover."
        ),
        "Support": (
            "Hypercare is limited to the agreed period after go-live.\n"
            "Operations staff will attend knowledge transfer sessions.\n"
            "Issues are reported through the agreed support channel."
        ),
    }


def _service_responsibilities(tech: str) -> Dict[str, str]:
    return {
        "Planning": (
            "Provide access to stakeholders and subject matter experts.\n"
            "Share current environment and process documentation.\n"
            "Review and approve the project charter and scope documents."
        ),
        "Design": (
            "Review design documents and provide feedback on time.\n"
            "Confirm prerequisites are in place before implementation.\n"
            "Assign technical resources to work with the design team."
        ),
        "Implementation": (
            "Grant administrative access to required systems.\n"
            f"Confirm {tech} prerequisites are in place.\n"
            "Review and approve implementation deliverables."
        ),
        "Testing": (
            "Provide testers and business owners for acceptance testing.\n"
            "Supply representative test data.\n"
            "Sign off test results within the agreed timeframe."
        ),
        "Go-Live": (
            "Approve the cutover plan and communications.\n"
            "Provide staff for validation during the cutover window.\n"
            "Notify end users of the change schedule."
        ),
        "Support": (
            "Assign operations staff to receive knowledge transfer.\n"
            "Report issues promptly during hypercare.\n"
            "Accept final documentation and project closure."
        ),
    }


def _service_out_of_scope(tech: str) -> Dict[str, str]:
    return {
        "Planning": (
            f"Development of custom solutions beyond standard {tech} capabilities.\n"
            "Business process reengineering.\n"
            "Hardware procurement or installation."
        ),
        "Design": (
            "Execution of the designed solution.\n"
            "Acquisition of hardware or software licenses.\n"
            "End-user training materials."
        ),
        "Implementation": (
            "Hardware procurement or installation unless explicitly included.\n"
            f"Custom applications outside standard {tech} functionality.\n"
            "Integration with systems not listed in the requirements."
        ),
        "Testing": (
            "Performance or load testing beyond functional validation.\n"
            "Security penetration testing.\n"
            "Remediation of defects in third-party systems."
        ),
        "Go-Live": (
            "Cutover of systems not included in the original scope.\n"
            "Extended after-hours support beyond the agreed window.\n"
            "End-user training beyond administrator knowledge transfer."
        ),
        "Support": (
            "Support beyond the agreed hypercare period.\n"
            "Managed services or 24/7 monitoring.\n"
            "Hardware decommissioning or disposal."
        ),
    }


def service_narratives(tech: str, name: str, phase: str) -> Dict[str, str]:
    """The four narrative fields of a service in ``phase``."""
    default_description = (
        f"We will provide {name} for your {tech} implementation, delivered by our consultants.\n"
        "Our team will work with your stakeholders so the solution meets your business requirements."
    )
    default_assumptions = (
        "Timely access to systems, information and personnel will be provided.\n"
        f"The environment meets the minimum technical requirements for {tech}.\n"
        "Work will be performed during standard business hours."
    )
    default_responsibilities = (
        "Provide timely access to systems, information and personnel.\n"
        "Make stakeholders available for meetings and decisions.\n"
        "Review and approve deliverables within the agreed timeframe."
    )
    default_out_of_scope = (
        "Hardware procurement or installation.\n"
        f"Custom development beyond standard {tech} capabilities.\n"
        "Support beyond the implementation period."
    )
    return {
        "service_description": _service_descriptions(tech, name).get(phase, default_description),
        "key_assumptions": _service_assumptions(tech).get(phase, default_assumptions),
        "client_responsibilities": _service_responsibilities(tech).get(
            phase, default_responsibilities
        ),
        "out_of_scope": _service_out_of_scope(tech).get(phase, default_out_of_scope),
    }


def subservice_narratives(tech: str, sub_name: str, service_name: str) -> Dict[str, str]:
    """The four narrative fields of a subservice, chosen by keyword."""
    if "Assessment" in sub_name or "Requirements" in sub_name:
        return {
            "service_description": (
                f"We will assess the current environment and requirements for {service_name}.\n"
                f"Our consultants will document findings and risks that shape the {tech} deployment."
            ),
            "key_assumptions": (
                "Current environment documentation will be provided for analysis.\n"
                "Stakeholders will be available for interviews."
            ),
            "client_responsibilities": (
                "Provide access to documentation and configurations.\n"
                "Review and approve assessment findings."
            ),
            "out_of_scope": (
                f"Evaluation of systems not related to {tech}.\n"
                "Implementation of assessment recommendations."
            ),
        }
    if "Validation" in sub_name or "Test" in sub_name:
        return {
            "service_description": (
                f"We will verify that {service_name} meets its acceptance criteria.\n"
                "Our team will execute test cases, record results and resolve in-scope defects."
            ),
            "key_assumptions": (
                "Build activities are complete before validation begins.\n"
                "Test environments and data will be available."
            ),
            "client_responsibilities": (
                "Participate in acceptance testing.\n"
                "Provide timely feedback on validation results."
            ),
            "out_of_scope": (
                "Load or penetration testing.\n"
                "Custom test tooling."
            ),
        }
    if "Planning" in sub_name or "Design" in sub_name or "Architecture" in sub_name:
        return {
            "service_description": (
                f"We will plan and design {service_name} for your environment.\n"
                f"Our experts will produce plans and designs based on proven {tech} practice."
            ),
            "key_assumptions": (
                "Requirements are documented before planning begins.\n"
                "Stakeholders will review deliverables on time."
            ),
            "client_responsibilities": (
                "Assign technical and business resources to planning.\n"
                "Approve the final plan and design."
            ),
            "out_of_scope": (
                "Execution of the planned work.\n"
                "Procurement of hardware or software."
            ),
        }
    return {
        "service_description": (
            f"We will deliver {sub_name} as part of {service_name}.\n"
            f"Our consultants will configure and document the {tech} components involved."
        ),
        "key_assumptions": (
            f"Access to the systems required for {sub_name} will be provided.\n"
            "Work can be performed during standard business hours."
        ),
        "client_responsibilities": (
            f"Provide access to systems and information required for {sub_name}.\n"
            "Review and approve deliverables within the agreed timeframe."
        ),
        "out_of_scope": (
            f"Activities not directly related to {sub_name}.\n"
            "Custom development beyond standard configuration."
        ),
    }
