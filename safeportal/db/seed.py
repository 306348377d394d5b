"""
Legal resources shipped with every new deployment.
"""

LEGAL_RESOURCES = [
    ("Rights", "Your Legal Rights",
     "Every woman has the right to live free from violence, harassment, and discrimination. You have the right to report incidents to law enforcement, seek protective orders, and access support services without fear of retaliation."),
    ("Rights", "Right to Safety at Work",
     "Workplace harassment is illegal. You have the right to a safe work environment free from sexual harassment, discrimination, and hostile work conditions. Employers are legally required to address complaints and take preventive measures."),
    ("Procedures", "How to File a Police Complaint",
     "To file a complaint: 1) Visit your local police station or call emergency services, 2) Provide detailed information about the incident, 3) Request a copy of the First Information Report (FIR), 4) Keep all evidence and documentation, 5) Follow up regularly on your case status."),
    ("Procedures", "Obtaining a Restraining Order",
     "A restraining order (protection order) legally prevents an abuser from contacting or approaching you. Steps: 1) File a petition at family court, 2) Provide evidence of threats or violence, 3) Attend the hearing, 4) If granted, the order is enforceable by law enforcement."),
    ("Legal Actions", "Civil vs Criminal Cases",
     "Criminal cases involve prosecution by the state for offenses like assault, while civil cases are personal lawsuits for damages. You can pursue both simultaneously. Criminal cases may result in imprisonment, while civil cases can award monetary compensation."),
    ("Legal Actions", "Seeking Legal Aid",
     "Free legal aid is available through: 1) National Legal Services Authority, 2) State Legal Services Authority, 3) District Legal Services Authority, 4) NGOs and women's organizations. Eligibility includes income criteria and case type."),
    ("Domestic Violence", "Protection from Domestic Violence",
     "The Protection of Women from Domestic Violence Act provides comprehensive protection including: 1) Protection orders, 2) Residence orders, 3) Monetary relief, 4) Custody orders, 5) Compensation orders. Contact local protection officer for assistance."),
    ("Domestic Violence", "Emergency Support Services",
     "In case of domestic violence: 1) Call emergency helpline (national/state numbers), 2) Contact nearest shelter home, 3) Seek medical attention and document injuries, 4) File a police complaint, 5) Contact legal aid services for guidance."),
    ("Workplace Harassment", "Sexual Harassment at Workplace",
     "The Sexual Harassment of Women at Workplace Act mandates: 1) Internal Complaints Committee at workplaces, 2) Strict timelines for inquiry, 3) Protection against retaliation, 4) Penalties for employers who fail to comply. File complaint within 3 months of incident."),
    ("Cyberstalking", "Online Harassment and Cybercrime",
     "Cyberstalking and online harassment are punishable under IT Act. Steps to take: 1) Document all evidence (screenshots, messages), 2) Block the harasser, 3) Report to social media platform, 4) File complaint with Cyber Crime Cell, 5) Consider legal action for defamation or threats."),
]
